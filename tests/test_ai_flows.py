"""
Tests for the AI prompt flows, the AI service wrapper and the AI endpoints
"""
from unittest.mock import MagicMock, patch
import pytest
from ai_service import AIService, AIServiceError, AIServiceUnavailable
from app.utils.ai_tools import format_search_results
from services.ai_flows import FLOWS, FlowOutputError, get_flow
from validators import ValidationError
from conftest import FakeAIService


TIERS = {
    'good': {'description': 'Replace the cartridge.', 'price': 150},
    'better': {'description': 'New mid-grade faucet.', 'price': 320},
    'best': {'description': 'Premium faucet and supply lines.', 'price': 540},
}

AI_CONFIG = {
    'ANTHROPIC_API_KEY': 'test-key',
    'TAVILY_API_KEY': None,
    'AI_TIMEOUT': 30,
    'AI_MODELS': {'claude': {'model': 'claude-sonnet-4-20250514', 'max_tokens': 1024, 'temperature': 0.2}},
}


@pytest.mark.unit
class TestFlowRegistry:
    """Tests for the flow table"""

    def test_all_flows_registered(self):
        assert set(FLOWS) == {
            'generate_price', 'generate_tiered_estimates', 'suggest_parts', 'find_vendors', 'analyze_invoice',
        }

    def test_unknown_flow(self):
        assert get_flow('write_poem') is None

    def test_output_schema_is_json_schema(self):
        schema = get_flow('generate_tiered_estimates').output_schema
        assert set(schema['required']) == {'good', 'better', 'best'}


@pytest.mark.unit
class TestFlowRun:
    """Tests for PromptFlow.run"""

    def test_input_is_validated_before_any_call(self):
        """Test that invalid input never reaches the provider"""
        fake = FakeAIService(structured=TIERS)
        flow = get_flow('generate_tiered_estimates')
        with pytest.raises(ValidationError) as exc_info:
            flow.run({'jobDetails': 'too short'}, fake)
        assert 'jobDetails' in exc_info.value.errors
        assert fake.calls == []

    def test_missing_field(self):
        fake = FakeAIService()
        with pytest.raises(ValidationError) as exc_info:
            get_flow('generate_price').run({}, fake)
        assert 'jobDescription' in exc_info.value.errors
        assert fake.calls == []

    def test_run_returns_validated_output(self):
        fake = FakeAIService(structured=TIERS)
        result = get_flow('generate_tiered_estimates').run(
            {'jobDetails': 'Leaking kitchen faucet, customer wants options'}, fake)
        assert result.better.price == 320
        call = fake.calls[0]
        assert call['tool_name'] == 'generate_tiered_estimates_result'
        assert 'Customer History: N/A' in call['prompt']

    def test_blank_history_defaults_to_na(self):
        flow_input = get_flow('generate_tiered_estimates').validate_input(
            {'jobDetails': 'Replace water heater in garage', 'customerHistory': '   '})
        assert flow_input.customerHistory == 'N/A'

    def test_output_not_matching_schema(self):
        """Test that a malformed answer is reported as a flow failure"""
        fake = FakeAIService(structured={'good': {'description': 'x', 'price': -5}})
        with pytest.raises(FlowOutputError):
            get_flow('generate_tiered_estimates').run({'jobDetails': 'Install a new ceiling fan'}, fake)

    def test_unknown_anomaly_type_rejected(self):
        fake = FakeAIService(structured={
            'isConsistent': False, 'analysisSummary': 'Odd.',
            'anomalies': [{'type': 'Typo', 'description': 'x'}],
        })
        with pytest.raises(FlowOutputError):
            get_flow('analyze_invoice').run(
                {'jobDetails': 'a', 'estimateDetails': 'N/A', 'invoiceDetails': 'c'}, fake)

    def test_provider_unavailable_propagates(self):
        with pytest.raises(AIServiceUnavailable):
            get_flow('suggest_parts').run({'issueDescription': 'Furnace will not ignite'}, FakeAIService(claude=False))


@pytest.mark.unit
class TestFlowStream:
    """Tests for PromptFlow.stream"""

    def test_chunks_forwarded_and_output_parsed(self):
        chunks = ['```json\n{"partsList": [{"partName": "Flame sensor", ',
                  '"partNumber": "FS-1", "description": "Detects flame"}]}\n```']
        fake = FakeAIService(stream_chunks=chunks)
        received = []
        result = get_flow('suggest_parts').stream({'issueDescription': 'Furnace short cycles'}, fake, received.append)
        assert received == chunks
        assert result.partsList[0].partName == 'Flame sensor'
        assert 'JSON schema' in fake.calls[0]['prompt']

    def test_non_json_stream(self):
        fake = FakeAIService(stream_chunks=['Sorry, I cannot help with that.'])
        with pytest.raises(FlowOutputError):
            get_flow('suggest_parts').stream({'issueDescription': 'Noisy pump'}, fake, lambda chunk: None)


@pytest.mark.unit
class TestVendorSearch:
    """Tests for the web search step of find_vendors"""

    def test_search_results_go_into_prompt(self):
        fake = FakeAIService(structured={'vendors': []}, search=True, search_response={
            'answer': 'Several supply houses serve Dallas.',
            'results': [{'title': 'Dallas Plumbing Supply', 'content': 'Open 7am', 'url': 'https://dps.example'}],
        })
        get_flow('find_vendors').run({'query': 'plumbing supply near Dallas, TX'}, fake)
        assert fake.calls[0] == {'type': 'search', 'query': 'plumbing supply near Dallas, TX'}
        prompt = fake.calls[1]['prompt']
        assert 'Dallas Plumbing Supply' in prompt
        assert 'Source: https://dps.example' in prompt

    def test_without_search_provider(self):
        fake = FakeAIService(structured={'vendors': []}, search=False)
        get_flow('find_vendors').run({'query': 'hvac parts Chicago'}, fake)
        assert [c['type'] for c in fake.calls] == ['structured']
        assert 'No web search results are available' in fake.calls[0]['prompt']

    def test_vendor_trades_are_checked(self):
        fake = FakeAIService(structured={'vendors': [{
            'name': 'Roof Co', 'contactName': 'Desk', 'phone': '1', 'email': 'a@b.co',
            'website': 'https://roof.example', 'address': '1 Main', 'trades': ['Roofing'],
        }]})
        with pytest.raises(FlowOutputError):
            get_flow('find_vendors').run({'query': 'roofing supply'}, fake)

    def test_format_search_results_truncates(self):
        text = format_search_results('q', {'results': [{'title': 'T', 'content': 'x' * 400, 'url': 'u'}]})
        assert 'x' * 300 + '...' in text

    def test_format_empty_results(self):
        assert 'No search results were found.' in format_search_results('q', {})


@pytest.mark.unit
class TestAIService:
    """Tests for the Anthropic/Tavily wrapper"""

    def test_nothing_configured(self):
        service = AIService({})
        assert service.is_available('claude') is False
        assert service.is_available('search') is False
        with pytest.raises(AIServiceUnavailable):
            service.generate_structured('hi', {}, 'tool')
        with pytest.raises(AIServiceUnavailable):
            service.web_search('anything')

    @patch('ai_service.anthropic.Anthropic')
    def test_structured_answer_comes_from_forced_tool(self, mock_anthropic):
        block = MagicMock(type='tool_use', input={'ok': True})
        block.name = 'answer'
        mock_anthropic.return_value.messages.create.return_value = MagicMock(content=[block], stop_reason='tool_use')

        service = AIService(AI_CONFIG)
        assert service.generate_structured('prompt', {'type': 'object'}, 'answer', system='sys') == {'ok': True}

        kwargs = mock_anthropic.return_value.messages.create.call_args.kwargs
        assert kwargs['tool_choice'] == {'type': 'tool', 'name': 'answer'}
        assert kwargs['system'] == 'sys'
        assert kwargs['max_tokens'] == 1024
        mock_anthropic.assert_called_once_with(api_key='test-key', timeout=30, max_retries=0)

    @patch('ai_service.anthropic.Anthropic')
    def test_missing_tool_output(self, mock_anthropic):
        text_block = MagicMock(type='text')
        mock_anthropic.return_value.messages.create.return_value = MagicMock(content=[text_block], stop_reason='end_turn')
        with pytest.raises(AIServiceError):
            AIService(AI_CONFIG).generate_structured('prompt', {}, 'answer')

    @patch('ai_service.anthropic.Anthropic')
    def test_stream_text(self, mock_anthropic):
        stream = MagicMock()
        stream.text_stream = iter(['Hel', 'lo'])
        mock_anthropic.return_value.messages.stream.return_value.__enter__.return_value = stream

        received = []
        assert AIService(AI_CONFIG).stream_text('prompt', received.append) == 'Hello'
        assert received == ['Hel', 'lo']

    @patch('ai_service.TavilyClient')
    def test_web_search(self, mock_tavily):
        mock_tavily.return_value.search.return_value = {'answer': 'a', 'results': [{'title': 't'}]}
        service = AIService({**AI_CONFIG, 'ANTHROPIC_API_KEY': None, 'TAVILY_API_KEY': 'tv-key'})
        assert service.is_available('search') is True
        assert service.web_search('supply houses')['results'] == [{'title': 't'}]
        assert mock_tavily.return_value.search.call_args.kwargs['max_results'] == 5

    @patch('ai_service.TavilyClient')
    def test_web_search_failure(self, mock_tavily):
        mock_tavily.return_value.search.side_effect = RuntimeError('quota exceeded')
        service = AIService({'TAVILY_API_KEY': 'tv-key'})
        with pytest.raises(AIServiceError):
            service.web_search('supply houses')


@pytest.mark.integration
class TestAIEndpoints:
    """Tests for /api/ai and the invoice audit endpoint"""

    def test_list_flows(self, client):
        body = client.get('/api/ai/flows').get_json()
        assert 'generate_price' in body['data']['flows']
        assert body['data']['claude'] is False

    def test_unknown_flow(self, client):
        response = client.post('/api/ai/write_poem', json={})
        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_invalid_input(self, client, fake_ai):
        response = client.post('/api/ai/generate_tiered_estimates', json={'jobDetails': 'short'})
        assert response.status_code == 400
        assert 'jobDetails' in response.get_json()['errors']
        assert fake_ai.calls == []

    def test_not_configured(self, client):
        response = client.post('/api/ai/generate_price', json={'jobDescription': 'Replace a toilet flapper'})
        assert response.status_code == 503
        assert response.get_json()['message'] == 'AI features are not configured.'

    def test_run_flow(self, client, fake_ai):
        fake_ai.structured = TIERS
        response = client.post('/api/ai/generate_tiered_estimates',
                               json={'jobDetails': 'Leaking kitchen faucet, wants options'})
        assert response.status_code == 200
        body = response.get_json()
        assert body['message'] == 'Generated successfully.'
        assert body['data']['best']['price'] == 540

    def test_bad_output_is_502(self, client, fake_ai):
        fake_ai.structured = {'recommendedTitle': 'Only a title'}
        response = client.post('/api/ai/generate_price', json={'jobDescription': 'Replace a toilet flapper'})
        assert response.status_code == 502
        assert response.get_json()['message'] == 'An error occurred while running generate price.'

    def test_stream(self, client, fake_ai):
        chunks = ['{"partsList": [', ']}']
        fake_ai.stream_chunks = chunks
        response = client.post('/api/ai/suggest_parts/stream', json={'issueDescription': 'Breaker trips'})
        assert response.status_code == 200
        assert response.mimetype == 'text/plain'
        assert response.get_data(as_text=True) == '{"partsList": []}'

    def test_stream_reports_bad_output_inline(self, client, fake_ai):
        fake_ai.stream_chunks = ['not json']
        response = client.post('/api/ai/suggest_parts/stream', json={'issueDescription': 'Breaker trips'})
        text = response.get_data(as_text=True)
        assert text.startswith('not json')
        assert '[error] An error occurred while running suggest parts.' in text

    def test_stream_unexpected_error_ends_stream(self, client, fake_ai):
        """Test that a crash in the worker still closes the stream with the generic error line"""
        fake_ai.error = RuntimeError('connection reset')
        response = client.post('/api/ai/suggest_parts/stream', json={'issueDescription': 'Breaker trips'})
        assert response.status_code == 200
        text = response.get_data(as_text=True)
        assert text == '\n\n[error] An error occurred while running suggest parts.'
        assert 'connection reset' not in text

    def test_stream_validates_first(self, client, fake_ai):
        response = client.post('/api/ai/suggest_parts/stream', json={})
        assert response.status_code == 400
        assert fake_ai.calls == []

    def test_stream_not_configured(self, client):
        response = client.post('/api/ai/suggest_parts/stream', json={'issueDescription': 'Breaker trips'})
        assert response.status_code == 503

    def test_save_suggested_vendor(self, client, services):
        response = client.post('/api/ai/vendors/save', json={
            'name': 'Dallas Plumbing Supply', 'website': 'https://dps.example', 'trades': ['Plumbing'],
        })
        assert response.status_code == 201
        assert services.inventory.search_vendors('dallas')[0]['name'] == 'Dallas Plumbing Supply'

    def test_analyze_invoice(self, client, fake_ai):
        fake_ai.structured = {
            'isConsistent': False, 'analysisSummary': 'Callout fee was not on the estimate.',
            'anomalies': [{'type': 'MissingItem', 'description': 'Emergency Callout Fee'}],
        }
        response = client.post('/api/invoices/inv2/analyze')
        assert response.status_code == 200
        body = response.get_json()
        assert body['message'] == 'Callout fee was not on the estimate.'
        assert body['data']['anomalies'][0]['type'] == 'MissingItem'
        assert 'EST-002' in fake_ai.calls[0]['prompt']

    def test_analyze_missing_invoice(self, client, fake_ai):
        response = client.post('/api/invoices/nope/analyze')
        assert response.status_code == 404
        assert fake_ai.calls == []
