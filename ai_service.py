"""
Centralized AI Service Manager
Wraps the Anthropic Messages API and Tavily web search behind one object with
uniform error handling. Calls are made once; nothing is retried.
"""
import logging
from typing import Optional, Dict, Any, Callable, List

import anthropic
from tavily import TavilyClient

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Base exception for AI service errors"""
    pass


class AIServiceUnavailable(AIServiceError):
    """Raised when AI service is not configured or unavailable"""
    pass


class AIServiceTimeout(AIServiceError):
    """Raised when AI service times out"""
    pass


class AIService:
    """
    Centralized AI service manager
    """

    def __init__(self, config):
        """
        Initialize AI service with configuration

        Args:
            config: Flask app configuration mapping
        """
        self.config = config
        self.anthropic_client = None
        self.tavily_client = None

        self._initialize_clients()

    def _initialize_clients(self):
        """Initialize API clients for whichever keys are configured"""
        if self.config.get('ANTHROPIC_API_KEY'):
            self.anthropic_client = anthropic.Anthropic(
                api_key=self.config['ANTHROPIC_API_KEY'],
                timeout=self.config.get('AI_TIMEOUT', 120),
                max_retries=0,
            )
            logger.info("Anthropic Claude client initialized")

        if self.config.get('TAVILY_API_KEY'):
            self.tavily_client = TavilyClient(api_key=self.config['TAVILY_API_KEY'])
            logger.info("Tavily search client initialized")

    def _request_params(self, prompt: str, system: Optional[str]) -> Dict[str, Any]:
        if not self.anthropic_client:
            raise AIServiceUnavailable("Anthropic Claude is not configured")

        model_config = self.config['AI_MODELS']['claude']
        params = {
            'model': model_config['model'],
            'max_tokens': model_config['max_tokens'],
            'temperature': model_config['temperature'],
            'messages': [{'role': 'user', 'content': prompt}],
        }
        if system:
            params['system'] = system
        return params

    def generate_structured(
        self,
        prompt: str,
        schema: Dict[str, Any],
        tool_name: str,
        system: Optional[str] = None,
        description: str = "Return the result in the required structure.",
    ) -> Dict[str, Any]:
        """
        Ask Claude for a single structured answer.

        The model is forced to call one tool whose input schema is ``schema``;
        the tool input is the answer.

        Args:
            prompt: Fully rendered user prompt
            schema: JSON schema the answer must follow
            tool_name: Name of the forced tool
            system: Optional system prompt
            description: Tool description shown to the model

        Returns:
            The tool input as a dictionary

        Raises:
            AIServiceUnavailable: If Claude is not configured
            AIServiceTimeout: If the request timed out
            AIServiceError: On API errors or when no tool call came back
        """
        params = self._request_params(prompt, system)
        params['tools'] = [{'name': tool_name, 'description': description, 'input_schema': schema}]
        params['tool_choice'] = {'type': 'tool', 'name': tool_name}

        try:
            logger.info(f"Calling Claude API: model={params['model']}, tool={tool_name}")
            response = self.anthropic_client.messages.create(**params)
        except anthropic.APITimeoutError as e:
            logger.error(f"Claude API timeout: {e}")
            raise AIServiceTimeout(f"Claude API timed out: {e}")
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            raise AIServiceError(f"Claude API error: {e}")

        logger.info(f"Claude API call successful: stop_reason={response.stop_reason}")
        for block in response.content:
            if getattr(block, 'type', None) == 'tool_use' and block.name == tool_name:
                return block.input

        raise AIServiceError(f"Claude returned no '{tool_name}' output")

    def stream_text(self, prompt: str, on_chunk: Callable[[str], None], system: Optional[str] = None) -> str:
        """
        Stream a plain-text completion, forwarding each text delta to ``on_chunk``.

        Returns:
            The full concatenated text
        """
        params = self._request_params(prompt, system)
        chunks: List[str] = []

        try:
            logger.info(f"Streaming from Claude API: model={params['model']}")
            with self.anthropic_client.messages.stream(**params) as stream:
                for text in stream.text_stream:
                    chunks.append(text)
                    on_chunk(text)
        except anthropic.APITimeoutError as e:
            logger.error(f"Claude stream timeout: {e}")
            raise AIServiceTimeout(f"Claude API timed out: {e}")
        except anthropic.APIError as e:
            logger.error(f"Claude stream error: {e}")
            raise AIServiceError(f"Claude API error: {e}")

        logger.info(f"Claude stream finished: {len(chunks)} chunks")
        return ''.join(chunks)

    def web_search(self, query: str, max_results: Optional[int] = None) -> Dict[str, Any]:
        """
        Perform web search using Tavily API

        Args:
            query: Search query
            max_results: Maximum number of results

        Returns:
            Tavily response with ``answer`` and ``results``

        Raises:
            AIServiceUnavailable: If Tavily is not configured
            AIServiceError: On API errors
        """
        if not self.tavily_client:
            raise AIServiceUnavailable("Tavily search is not configured")

        max_results = max_results or self.config.get('AI_SEARCH_MAX_RESULTS', 5)
        try:
            logger.info(f"Performing web search: query='{query}'")
            results = self.tavily_client.search(
                query=query,
                max_results=max_results,
                search_depth="advanced",
                include_answer=True,
            )
        except Exception as e:
            logger.error(f"Web search error: {e}")
            raise AIServiceError(f"Web search failed: {e}")

        logger.info(f"Web search successful: {len(results.get('results', []))} results")
        return results

    def is_available(self, service: str) -> bool:
        """
        Check if a specific AI service is available

        Args:
            service: Service name ('claude' or 'search')
        """
        if service == 'claude':
            return self.anthropic_client is not None
        elif service == 'search':
            return self.tavily_client is not None
        return False
