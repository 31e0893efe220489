"""
Data schemas for the ScenarioGen pipeline.
"""
from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, Field


class ElementDescriptor(BaseModel):
    """One UI element the LLM picked as relevant for a test step."""
    test_step: Optional[str] = None
    tag: str
    id: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="class")
    required: bool = True
    role: Optional[str] = None
    value: Optional[str] = None
    text: Optional[str] = None
    name: Optional[str] = None
    placeholder: Optional[str] = None
    test_id: Optional[str] = Field(default=None, alias="data-testid")

    class Config:
        populate_by_name = True
        extra = "allow"


class ElementMap(BaseModel):
    """Element description returned by the extraction stage."""
    tags: List[ElementDescriptor]


class ExtractionResult(BaseModel):
    """Output of the extraction stage, parsed or not."""
    raw_text: str
    element_map: Optional[ElementMap] = None
    parsed: bool = False

    def payload(self) -> Union[Dict[str, Any], str]:
        """Value forwarded to code generation: parsed JSON, or the raw text."""
        if self.parsed and self.element_map is not None:
            return self.element_map.model_dump(by_alias=True, exclude_none=True)
        return self.raw_text


class GenerationRequest(BaseModel):
    """Input for one pipeline run."""
    url: str
    scenario: str
    output_path: Optional[str] = None
    language: Optional[str] = None  # "python" or "javascript"
    run_tests: bool = False


class RunResult(BaseModel):
    """Outcome of running a generated test file."""
    command: List[str]
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    ok: bool = False
    time_ms: float = 0.0


class GenerationResult(BaseModel):
    """Outcome of one pipeline run."""
    url: str
    scenario: str
    ok: bool = False
    error: Optional[str] = None
    html_chars: int = 0
    elements: Optional[Union[Dict[str, Any], str]] = None
    code: Optional[str] = None
    output_path: Optional[str] = None
    language: str = "python"
    run: Optional[RunResult] = None
    timings_ms: Dict[str, float] = Field(default_factory=dict)
