"""
AI analysis of a profile's health journal.

Builds a JSON context from recent diary entries and symptoms, asks the
language model for an analysis, and files the answer as an "AI" diary entry.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional, Union

from meeka.core.collection.gateway import PersistenceGateway
from meeka.core.collection.records import DiaryRecord
from meeka.core.collection.schemas import DIARY_ENTRIES
from meeka.core.intelligence.intent.types import Intent
from meeka.core.intelligence.vocabulary import RegionCode, parse_region
from meeka.infra.claude import ClaudeClient, ClaudeClientError, get_claude_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisType:
    """One flavor of AI analysis."""

    key: str
    title: str
    instruction: str


ANALYSIS_TYPES: dict[Intent, AnalysisType] = {
    Intent.AI_SYMPTOM_ANALYSIS: AnalysisType(
        key="symptom-analysis",
        title="Symptom Insights",
        instruction=(
            "Analyze the symptoms and diary entries. Look for patterns, correlations "
            "between symptoms, and potential triggers. Focus on severity changes and "
            "duration patterns."
        ),
    ),
    Intent.AI_QUESTIONS: AnalysisType(
        key="questions",
        title="Suggested Questions for Next Visit",
        instruction=(
            "Based on the symptoms and diary entries, suggest important questions to "
            "ask during the next medical visit. Prioritize questions based on severity "
            "and recency of symptoms."
        ),
    ),
    Intent.AI_TERMINOLOGY: AnalysisType(
        key="terminology",
        title="Medical Terminology Explanation",
        instruction=(
            "Identify and explain any medical terminology found in the diary entries "
            "and symptoms. Provide clear, patient-friendly explanations."
        ),
    ),
    Intent.AI_TRENDS: AnalysisType(
        key="trends",
        title="Health Trend Analysis",
        instruction=(
            "Analyze the overall health trends based on symptoms and diary entries. "
            "Identify any improvements or deteriorations, and highlight key patterns "
            "in health status."
        ),
    ),
}

_REGION_INSTRUCTIONS = {
    RegionCode.AU: "Please use Australian English and Australian medical terminology where appropriate.",
    RegionCode.UK: "Please use British English and UK medical terminology where appropriate.",
    RegionCode.USA: "Please use American English and US medical terminology where appropriate.",
}

SYSTEM_PROMPT = """{region_instructions}
You are Meeka, a warm and helpful AI health assistant. You help users understand their own health records.

Guidelines:
- Be warm, clear, and non-clinical in tone
- Keep responses concise
- Don't provide medical advice or diagnoses
- Only use the data you are given"""


@dataclass
class AnalysisContext:
    """Journal data the analysis is based on."""

    diary_entries: list[dict[str, Any]] = field(default_factory=list)
    symptoms: list[dict[str, Any]] = field(default_factory=list)

    def to_json(self) -> str:
        """Compact JSON for the prompt."""
        return json.dumps({
            "diaryEntries": [
                {
                    "type": e.get("entry_type"),
                    "title": e.get("title"),
                    "date": str(e.get("date")) if e.get("date") else None,
                    "notes": e.get("notes"),
                    "severity": e.get("severity"),
                }
                for e in self.diary_entries
            ],
            "symptoms": [
                {
                    "description": s.get("description"),
                    "startDate": str(s.get("start_date")) if s.get("start_date") else None,
                    "endDate": str(s.get("end_date")) if s.get("end_date") else None,
                    "severity": s.get("severity"),
                    "notes": s.get("notes"),
                }
                for s in self.symptoms
            ],
        })

    @property
    def source_ids(self) -> list[str]:
        """Ids of the diary entries the analysis was built from."""
        return [str(e["id"]) for e in self.diary_entries if e.get("id")]


@dataclass
class AnalysisResult:
    """Outcome of one analysis request."""

    success: bool
    message: str
    analysis_type: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    inserted_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "message": self.message,
            "analysis_type": self.analysis_type,
            "title": self.title,
            "content": self.content,
            "inserted_id": self.inserted_id,
        }


class AnalysisService:
    """
    Runs AI analysis requests.

    The language model is an opaque collaborator: failures become a failed
    AnalysisResult, never an exception.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        claude_client: Optional[ClaudeClient] = None,
        today: Callable[[], date] = date.today,
    ):
        """Initialize service.

        Args:
            gateway: Where the AI diary entry is written
            claude_client: Claude client (uses singleton if not provided)
            today: Reference date provider for the entry date
        """
        self._gateway = gateway
        self._claude_client = claude_client
        self._today = today

    async def _get_client(self) -> ClaudeClient:
        """Get Claude client."""
        if self._claude_client is None:
            self._claude_client = await get_claude_client()
        return self._claude_client

    def build_prompt(self, analysis: AnalysisType, context: AnalysisContext) -> str:
        return f"{analysis.instruction}\n\nHealth data (JSON):\n{context.to_json()}"

    async def run(
        self,
        intent: Intent,
        profile_id: str,
        context: Optional[AnalysisContext] = None,
        region: Union[RegionCode, str, None] = None,
        save: bool = True,
    ) -> AnalysisResult:
        """
        Run one analysis.

        Args:
            intent: One of the AI_* intents
            profile_id: Profile the analysis is for
            context: Journal data to analyze
            region: Region for spelling and terminology
            save: Whether to file the result as a diary entry

        Returns:
            AnalysisResult
        """
        analysis = ANALYSIS_TYPES.get(intent)
        if analysis is None:
            logger.warning(f"No analysis for intent {intent.value}")
            return AnalysisResult(success=False, message=f"Unsupported analysis: {intent.value}")

        context = context or AnalysisContext()
        code = parse_region(region) or RegionCode.USA
        system_prompt = SYSTEM_PROMPT.format(region_instructions=_REGION_INSTRUCTIONS[code])

        try:
            client = await self._get_client()
            response = await client.generate(
                prompt=self.build_prompt(analysis, context),
                system_prompt=system_prompt,
            )
        except ClaudeClientError as e:
            logger.error(f"AI analysis {analysis.key} failed: {e}")
            return AnalysisResult(
                success=False,
                message=f"Sorry, I couldn't generate {analysis.title} right now.",
                analysis_type=analysis.key,
                title=analysis.title,
            )

        logger.info(
            f"AI analysis {analysis.key} generated ({response.output_tokens} tokens, "
            f"{response.latency_ms:.0f}ms)"
        )

        if not save:
            return AnalysisResult(
                success=True,
                message=f"{analysis.title} generated successfully",
                analysis_type=analysis.key,
                title=analysis.title,
                content=response.content,
            )

        record = DiaryRecord(
            profile_id=profile_id,
            entry_type="AI",
            title=f"AI Insights: {analysis.title}",
            date=self._today(),
            notes=response.content,
            ai_type=analysis.key,
            source_entries=context.source_ids,
        )
        result = await self._gateway.insert(DIARY_ENTRIES, record)

        if not result.success:
            return AnalysisResult(
                success=False,
                message=result.message,
                analysis_type=analysis.key,
                title=analysis.title,
                content=response.content,
            )

        return AnalysisResult(
            success=True,
            message=f"{analysis.title} has been added to the diary",
            analysis_type=analysis.key,
            title=analysis.title,
            content=response.content,
            inserted_id=result.inserted_id,
        )
