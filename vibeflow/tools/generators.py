"""Research-backed document generators.

Each generator runs as a background job:

1. three research queries, run as one resilient phase,
2. one generation call with the research folded into the prompt,
3. the document saved under the output directory.
"""

from __future__ import annotations

import abc
import logging
from datetime import datetime, timezone
from functools import partial
from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .. import llm
from ..background import JobReporter, spawn_background_job
from ..config import VibeflowConfig
from ..contracts import JobHandle, ToolContext, ToolResult
from ..errors import ToolExecutionError
from ..jobs import JobManager
from ..notifier import BaseProgressNotifier
from ..phases import run_resilient_phase
from .base import Tool
from .output import save_document

logger = logging.getLogger(__name__)


class ProductInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_description: str = Field(alias="productDescription", min_length=1)


class RulesInput(ProductInput):
    user_stories: Optional[str] = Field(default=None, alias="userStories")
    rule_categories: Optional[List[str]] = Field(default=None, alias="ruleCategories")


USER_STORIES_SYSTEM_PROMPT = """# User Stories Generator

You are an experienced agile product owner. Write user stories for the product
described by the user, grouped into epics.

For every story give:
- an ID (US-001, US-002, ...)
- "As a <persona>, I want <goal> so that <benefit>"
- acceptance criteria as a bullet list
- a priority (High / Medium / Low)

Use the research context when it is available. Output Markdown only."""

PRD_SYSTEM_PROMPT = """# PRD Generator

You are a senior product manager. Write a complete Product Requirements
Document for the product described by the user with these sections:

1. Introduction / Overview
2. Goals and Objectives
3. Target Audience
4. Features and Requirements (functional and non-functional)
5. User Experience
6. Success Metrics
7. Release Criteria
8. Open Questions and Assumptions

Ground market and audience statements in the research context when it is
available. Output Markdown only."""

RULES_SYSTEM_PROMPT = """# Rules Generator

You are a principal engineer writing development rules for a team. Produce a
rules document grouped by category. Every rule has:
- a short title
- the rule itself
- a rationale
- a good and a bad example where useful

Prefer concrete, checkable rules over general advice. Use the research
context when it is available. Output Markdown only."""


class ResearchedDocumentTool(Tool):
    """Base for tools that research, generate and save one document."""

    label: ClassVar[str]
    noun: ClassVar[str]
    logical_task_name: ClassVar[str]
    output_subdir: ClassVar[str]
    file_suffix: ClassVar[str]
    system_prompt: ClassVar[str]

    def __init__(
        self, job_manager: JobManager, notifier: Optional[BaseProgressNotifier]
    ) -> None:
        self.job_manager = job_manager
        self.notifier = notifier

    @abc.abstractmethod
    def research_topics(self, params: ProductInput) -> List[Tuple[str, str]]:
        """Return (section title, research query) pairs."""
        raise NotImplementedError

    def build_prompt(self, params: ProductInput, research_context: str) -> str:
        return (
            f"Create comprehensive {self.noun} for the following product:\n\n"
            f"{params.product_description}\n\n{research_context}"
        )

    async def execute(
        self, params: ProductInput, config: VibeflowConfig, context: ToolContext
    ) -> JobHandle:
        return spawn_background_job(
            job_manager=self.job_manager,
            notifier=self.notifier,
            tool_name=self.name,
            params=params.model_dump(by_alias=True, exclude_none=True),
            context=context,
            body=partial(self._run, params, config),
            label=f"{self.label} generation",
        )

    async def _run(
        self, params: ProductInput, config: VibeflowConfig, reporter: JobReporter
    ) -> ToolResult:
        try:
            await reporter.progress(f"Starting {self.noun} generation...")

            await reporter.progress("Performing pre-generation research...")
            topics = self.research_topics(params)
            answers = await run_resilient_phase(
                [llm.perform_research_query(query, config.llm) for _, query in topics],
                notifier=self.notifier,
                session_id=reporter.session_id,
                job_id=reporter.job_id,
            )
            research_context = "## Pre-Generation Research Context:\n\n" + "".join(
                f"### {title}:\n{answer.strip()}\n\n"
                for (title, _), answer in zip(topics, answers)
            )

            await reporter.progress(f"Generating {self.noun} content via LLM...")
            content = await llm.perform_direct_llm_call(
                self.build_prompt(params, research_context),
                self.system_prompt,
                config.llm,
                self.logical_task_name,
            )
            generated_at = datetime.now(timezone.utc).isoformat()
            document = f"{content}\n\n_Generated: {generated_at}_"

            await reporter.progress(f"Saving {self.noun} to file...")
            path = await save_document(
                config.output_dir,
                self.output_subdir,
                params.product_description,
                self.file_suffix,
                document,
            )
            logger.info(f"Saved {self.noun} for job {reporter.job_id} to {path}")
        except Exception as e:
            raise ToolExecutionError(
                f"Failed to generate {self.noun}: {e}",
                {"tool_name": self.name, "job_id": reporter.job_id},
                e,
            ) from e

        return ToolResult.text(
            f"{self.label} generated successfully and saved to: {path}\n\n{document}"
        )


class GenerateUserStoriesTool(ResearchedDocumentTool):
    name = "generate-user-stories"
    description = "Generate user stories with acceptance criteria for a product."
    input_model = ProductInput
    label = "User stories"
    noun = "user stories"
    logical_task_name = "user_stories_generation"
    output_subdir = "user-stories-generator"
    file_suffix = "user-stories"
    system_prompt = USER_STORIES_SYSTEM_PROMPT

    def research_topics(self, params: ProductInput) -> List[Tuple[str, str]]:
        product = params.product_description
        return [
            ("User Personas & Stakeholders", f"User personas and stakeholders for: {product}"),
            ("User Workflows & Journeys", f"Common user workflows and journeys for: {product}"),
            (
                "User Experience Expectations",
                f"User experience expectations and pain points for: {product}",
            ),
        ]


class GeneratePRDTool(ResearchedDocumentTool):
    name = "generate-prd"
    description = "Generate a product requirements document for a product."
    input_model = ProductInput
    label = "PRD"
    noun = "PRD"
    logical_task_name = "prd_generation"
    output_subdir = "prd-generator"
    file_suffix = "prd"
    system_prompt = PRD_SYSTEM_PROMPT

    def build_prompt(self, params: ProductInput, research_context: str) -> str:
        return (
            "Create a comprehensive PRD for the following product:\n\n"
            f"{params.product_description}\n\n{research_context}"
        )

    def research_topics(self, params: ProductInput) -> List[Tuple[str, str]]:
        product = params.product_description
        return [
            ("Market Analysis", f"Market analysis and competitive landscape for: {product}"),
            (
                "User Needs & Expectations",
                f"User needs, demographics, and expectations for: {product}",
            ),
            (
                "Industry Standards & Best Practices",
                f"Industry standards, best practices, and common feature sets for products like: {product}",
            ),
        ]


class GenerateRulesTool(ResearchedDocumentTool):
    name = "generate-rules"
    description = "Generate development rules for a product, optionally from user stories."
    input_model = RulesInput
    label = "Development rules"
    noun = "rules"
    logical_task_name = "rules_generation"
    output_subdir = "rules-generator"
    file_suffix = "rules"
    system_prompt = RULES_SYSTEM_PROMPT

    def build_prompt(self, params: RulesInput, research_context: str) -> str:
        prompt = (
            "Create a comprehensive set of development rules for the following product:\n\n"
            f"{params.product_description}\n\n"
        )
        if params.user_stories:
            prompt += f"Based on these user stories:\n\n{params.user_stories}\n\n"
        if params.rule_categories:
            prompt += f"Focus on these rule categories: {', '.join(params.rule_categories)}\n\n"
        return prompt + research_context

    def research_topics(self, params: RulesInput) -> List[Tuple[str, str]]:
        product = params.product_description
        categories = ""
        if params.rule_categories:
            categories = f" Focus on these categories: {', '.join(params.rule_categories)}"
        return [
            ("Best Practices", f"Best development practices and coding standards for building: {product}"),
            ("Rule Categories", f"Common rule categories for developing: {product}.{categories}"),
            (
                "Architecture Patterns",
                f"Modern architecture patterns and file organization for: {product}",
            ),
        ]
