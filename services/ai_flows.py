"""
Prompt flows for the AI tools.

Each flow pairs a pydantic input model, a prompt template and a pydantic
output model. ``run`` validates the input before any network call, makes one
structured generation call and validates what comes back; ``stream`` does the
same over a text stream, forwarding chunks as they arrive.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ai_service import AIServiceError
from app.utils.ai_tools import format_search_results
from validators import ValidationError

logger = logging.getLogger(__name__)

ESTIMATOR_SYSTEM = "You are an expert estimator and advisor for a home services company (plumbing, HVAC, electrical)."


class FlowOutputError(AIServiceError):
    """The provider answered, but not in the declared output shape"""

    def __init__(self, flow_name: str, message: str):
        self.flow_name = flow_name
        super().__init__(f"{flow_name}: {message}")


class FlowInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# ==================== INPUT / OUTPUT MODELS ====================

class GeneratePriceInput(FlowInput):
    jobDescription: str = Field(..., min_length=1, description="Job description including location, complexity and customer requests")


class Material(BaseModel):
    name: str = Field(..., description="Name of the material or part")
    quantity: float = Field(..., description="Estimated quantity needed for the job")


class GeneratePriceOutput(BaseModel):
    recommendedTitle: str = Field(..., description="Concise, professional title for the service")
    serviceDescription: str = Field(..., description="Customer-facing description of the work")
    suggestedPrice: float = Field(..., description="Single suggested retail price in USD")
    materials: List[Material] = Field(default_factory=list, description="Primary materials with quantities")


class TieredEstimatesInput(FlowInput):
    jobDetails: str = Field(..., min_length=10, description="Tasks, scope and requirements of the job")
    customerHistory: str = Field(default='N/A', description="Past services, preferences and payment behaviour")

    @field_validator('customerHistory', mode='before')
    @classmethod
    def default_history(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 'N/A'
        return value


class TierOption(BaseModel):
    description: str = Field(..., description="Paragraph describing what this tier includes")
    price: float = Field(..., ge=0, description="Total price in USD")


class TieredEstimatesOutput(BaseModel):
    good: TierOption = Field(..., description="Essential services at the lowest price")
    better: TierOption = Field(..., description="Additional services and features at a moderate price")
    best: TierOption = Field(..., description="Premium services with extended support at a higher price")


class SuggestPartsInput(FlowInput):
    issueDescription: str = Field(..., min_length=1, description="Description of the issue")


class SuggestedPart(BaseModel):
    partName: str
    partNumber: str
    description: str = Field(..., description="What the part is and how it is used")


class SuggestPartsOutput(BaseModel):
    partsList: List[SuggestedPart] = Field(default_factory=list)


class FindVendorsInput(FlowInput):
    query: str = Field(..., min_length=1, description='Vendor type and location, e.g. "plumbing supply near Dallas, TX"')


class SuggestedVendor(BaseModel):
    name: str
    contactName: str
    phone: str
    email: str
    website: str
    address: str
    trades: List[Literal['Plumbing', 'HVAC', 'Electrical', 'General']] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)


class FindVendorsOutput(BaseModel):
    vendors: List[SuggestedVendor] = Field(default_factory=list)


class AnalyzeInvoiceInput(FlowInput):
    jobDetails: str = Field(..., min_length=1)
    estimateDetails: str = Field(..., min_length=1, description='Original estimate, or "N/A" when none exists')
    invoiceDetails: str = Field(..., min_length=1)


class Anomaly(BaseModel):
    type: Literal['MissingItem', 'PriceMismatch', 'ScopeMismatch', 'UnusualItem', 'LaborMismatch']
    description: str


class AnalyzeInvoiceOutput(BaseModel):
    isConsistent: bool = Field(..., description="False when any significant anomaly was found")
    analysisSummary: str = Field(..., description="One-sentence summary of the findings")
    anomalies: List[Anomaly] = Field(default_factory=list)


# ==================== FLOW ====================

def _pydantic_field_errors(error: PydanticValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for item in error.errors():
        field = '.'.join(str(part) for part in item['loc']) or '__root__'
        errors.setdefault(field, []).append(item['msg'])
    return errors


def _extract_json(text: str) -> Any:
    """Parse a JSON object out of model text, tolerating a fenced code block."""
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL)
    if fenced:
        text = fenced.group(1)
    start, end = text.find('{'), text.rfind('}')
    if start == -1 or end < start:
        raise ValueError("no JSON object in response")
    return json.loads(text[start:end + 1])


class PromptFlow:
    """One prompt template bound to typed input and output models."""

    def __init__(self, name: str, input_model: Type[FlowInput], output_model: Type[BaseModel],
                 template: str, system: str = ESTIMATOR_SYSTEM,
                 prepare: Optional[Callable[[FlowInput, Any], Dict[str, str]]] = None):
        self.name = name
        self.input_model = input_model
        self.output_model = output_model
        self.template = template
        self.system = system
        self.prepare = prepare

    @property
    def output_schema(self) -> Dict[str, Any]:
        return self.output_model.model_json_schema()

    def validate_input(self, data: Dict[str, Any]) -> FlowInput:
        """
        Raises:
            ValidationError: With per-field messages; nothing has been sent yet
        """
        if isinstance(data, self.input_model):
            return data
        try:
            return self.input_model.model_validate(data or {})
        except PydanticValidationError as e:
            raise ValidationError('Validation failed. Please check your inputs.',
                                  errors=_pydantic_field_errors(e))

    def render(self, flow_input: FlowInput, extra: Optional[Dict[str, str]] = None) -> str:
        """Substitute the input fields (and any prepared context) into the template."""
        values = flow_input.model_dump()
        values.update(extra or {})
        return self.template.format(**values)

    def _build_prompt(self, data: Dict[str, Any], ai_service) -> str:
        flow_input = self.validate_input(data)
        extra = self.prepare(flow_input, ai_service) if self.prepare else None
        return self.render(flow_input, extra)

    def _validate_output(self, payload: Any) -> BaseModel:
        try:
            return self.output_model.model_validate(payload)
        except PydanticValidationError as e:
            logger.warning(f"Flow {self.name} returned invalid output: {e.error_count()} error(s)")
            raise FlowOutputError(self.name, f"response did not match schema ({e.error_count()} errors)")

    def run(self, data: Dict[str, Any], ai_service) -> BaseModel:
        """Validate input, call the provider once and return the validated output model."""
        prompt = self._build_prompt(data, ai_service)
        logger.info(f"Running flow {self.name}")
        payload = ai_service.generate_structured(
            prompt, self.output_schema, tool_name=f"{self.name}_result", system=self.system,
        )
        return self._validate_output(payload)

    def stream(self, data: Dict[str, Any], ai_service, on_chunk: Callable[[str], None]) -> BaseModel:
        """
        Like ``run`` but streams raw text. Chunks are forwarded unchanged; the
        full text is parsed and validated once the stream ends.
        """
        prompt = self._build_prompt(data, ai_service)
        prompt += (
            "\n\nRespond with a single JSON object and nothing else. "
            f"It must match this JSON schema:\n{json.dumps(self.output_schema)}"
        )
        logger.info(f"Streaming flow {self.name}")
        text = ai_service.stream_text(prompt, on_chunk, system=self.system)
        try:
            payload = _extract_json(text)
        except ValueError as e:
            raise FlowOutputError(self.name, f"response was not valid JSON ({e})")
        return self._validate_output(payload)


# ==================== TEMPLATES ====================

GENERATE_PRICE_TEMPLATE = """Based on the job description below, produce a complete and fair market price estimate.

Job description:
"{jobDescription}"

Provide:
1. Recommended Title: a clear, professional title for the service.
2. Service Description: a customer-friendly paragraph explaining the scope of work.
3. Suggested Price: one realistic dollar amount for the whole service. Never a range.
4. Materials: the primary materials required, each with an estimated quantity."""

TIERED_ESTIMATES_TEMPLATE = """Create three distinct Good / Better / Best options for the job below, each offering a different level of service and value.

Job Details: {jobDetails}
Customer History: {customerHistory}

- Good: the essential services at the lowest reasonable price.
- Better: adds services and features at a moderate price.
- Best: premium service, enhanced features and extended support at a higher price.

Each option needs a full paragraph describing what is included and a single total price in USD."""

SUGGEST_PARTS_TEMPLATE = """You are acting as an experienced field technician. List the parts likely needed to fix the issue below.
For each part give the part name, a typical manufacturer or generic part number, and a short description of what it is used for.

Issue Description: {issueDescription}"""

FIND_VENDORS_TEMPLATE = """Find real, existing local suppliers for a field service company.

User query: "{query}"

{searchContext}

Pick the 3-5 most relevant suppliers. If the query names a specific business and it appears in the search results, include it.
For each vendor give the full business name, a plausible contact (e.g. "Pro Desk" or "Sales Department"), phone, email, website, full street address, the trades they serve (Plumbing, HVAC, Electrical or General) and the product categories they likely stock.
Do not invent businesses. Fewer accurate results are better than padded ones."""

ANALYZE_INVOICE_TEMPLATE = """Audit the invoice below for accuracy and consistency against the original job scope and estimate.

1. Job Details:
```
{jobDetails}
```

2. Estimate Details:
```
{estimateDetails}
```

3. Final Invoice Details:
```
{invoiceDetails}
```

Compare the invoice with the job and the estimate and flag:
- items on the invoice not mentioned in the job or estimate (MissingItem or UnusualItem),
- significant price differences for similar items (PriceMismatch),
- work outside the original scope (ScopeMismatch),
- labour charges out of line with the job (LaborMismatch).

Decide whether the invoice is consistent, summarise in one sentence and list every anomaly. Return an empty anomalies list when there are none."""


def _vendor_search_context(flow_input: FindVendorsInput, ai_service) -> Dict[str, str]:
    """Run one web search ahead of generation and fold the results into the prompt."""
    if not ai_service.is_available('search'):
        return {'searchContext': 'No web search results are available. Only list suppliers you are confident exist.'}
    try:
        response = ai_service.web_search(flow_input.query)
    except AIServiceError as e:
        logger.warning(f"Vendor search unavailable, continuing without results: {e}")
        return {'searchContext': 'Web search failed. Only list suppliers you are confident exist.'}
    return {'searchContext': format_search_results(flow_input.query, response)}


FLOWS: Dict[str, PromptFlow] = {
    flow.name: flow for flow in (
        PromptFlow('generate_price', GeneratePriceInput, GeneratePriceOutput, GENERATE_PRICE_TEMPLATE),
        PromptFlow('generate_tiered_estimates', TieredEstimatesInput, TieredEstimatesOutput,
                   TIERED_ESTIMATES_TEMPLATE),
        PromptFlow('suggest_parts', SuggestPartsInput, SuggestPartsOutput, SUGGEST_PARTS_TEMPLATE),
        PromptFlow('find_vendors', FindVendorsInput, FindVendorsOutput, FIND_VENDORS_TEMPLATE,
                   system="You are a sourcing assistant for a field service company.",
                   prepare=_vendor_search_context),
        PromptFlow('analyze_invoice', AnalyzeInvoiceInput, AnalyzeInvoiceOutput, ANALYZE_INVOICE_TEMPLATE,
                   system="You are an expert invoice auditor for a home services company."),
    )
}


def get_flow(name: str) -> Optional[PromptFlow]:
    return FLOWS.get(name)
