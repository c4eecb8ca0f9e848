"""Commit capabilities the reasoning engine may invoke during analysis.

Each capability pairs a pydantic argument model (its parameter contract) with
the ResultContext field group it writes and the progress checkpoint reached
once it has been merged. ``signal_complete`` is the terminal capability.
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional, Type

from langchain_core.utils.function_calling import convert_to_openai_tool
from pydantic import BaseModel, ConfigDict, Field

from ..models import Artifacts, Benchmark, KeyModule, ResultContext


class _Args(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CommitOverviewArgs(_Args):
    summary: str = Field(description="2-3 sentences describing the business value and technical nature of the repo.")
    techStack: list[str] = Field(description="List of languages, frameworks, and key libraries detected.")


class ModuleArgs(_Args):
    name: str
    responsibility: str = ""


class CommitArchitectureArgs(_Args):
    entryPoints: list[str] = Field(description="Main files that start the application.")
    keyModules: list[ModuleArgs] = Field(description="List of 4-8 core functional modules/folders and what they do.")


class CommitWorkflowsArgs(_Args):
    workflows: list[str] = Field(description="Step-by-step descriptions of key operations.")


class CommitArtifactsArgs(_Args):
    projectOverview: str = Field(description="Detailed markdown for the Project Overview section.")
    gettingStarted: str = Field(description="Detailed markdown for Installation/Setup.")
    architecture: str = Field(description="Detailed markdown for Architecture concepts.")
    commonTasks: str = Field(description="Detailed markdown for Common usage tasks.")


class BenchmarkArgs(_Args):
    question: str = Field(description="A specific question about a specific file or function.")
    answer: str = Field(description="The correct answer based on the code analysis.")


class CommitBenchmarksArgs(_Args):
    benchmarks: list[BenchmarkArgs]


class SignalCompleteArgs(_Args):
    completion_message: Optional[str] = None


def _apply_overview(ctx: ResultContext, args: CommitOverviewArgs) -> ResultContext:
    return replace(ctx, summary=args.summary, tech_stack=tuple(args.techStack))


def _apply_architecture(ctx: ResultContext, args: CommitArchitectureArgs) -> ResultContext:
    return replace(
        ctx,
        entry_points=tuple(args.entryPoints),
        key_modules=tuple(KeyModule(name=m.name, responsibility=m.responsibility) for m in args.keyModules),
    )


def _apply_workflows(ctx: ResultContext, args: CommitWorkflowsArgs) -> ResultContext:
    return replace(ctx, workflows=tuple(args.workflows))


def _apply_artifacts(ctx: ResultContext, args: CommitArtifactsArgs) -> ResultContext:
    return replace(ctx, artifacts=Artifacts(
        project_overview=args.projectOverview,
        getting_started=args.gettingStarted,
        architecture=args.architecture,
        common_tasks=args.commonTasks,
    ))


def _apply_benchmarks(ctx: ResultContext, args: CommitBenchmarksArgs) -> ResultContext:
    return replace(ctx, benchmarks=tuple(Benchmark(question=b.question, answer=b.answer) for b in args.benchmarks))


@dataclass(frozen=True)
class Capability:
    """A named, schema-declared operation offered to the reasoning engine."""

    name: str
    description: str
    args_model: Type[BaseModel]
    checkpoint: int  # Percent reached once merged
    status: str
    apply: Optional[Callable[[ResultContext, BaseModel], ResultContext]] = None
    terminal: bool = False

    def declaration(self) -> dict:
        """OpenAI-style tool declaration sent to the engine on every turn."""
        tool = convert_to_openai_tool(self.args_model)
        tool["function"]["name"] = self.name
        tool["function"]["description"] = self.description
        return tool


CAPABILITIES: tuple[Capability, ...] = (
    Capability(
        name="commit_overview",
        description="Save the Executive Summary and Tech Stack identification.",
        args_model=CommitOverviewArgs,
        checkpoint=20,
        status="Identified Tech Stack & Summary",
        apply=_apply_overview,
    ),
    Capability(
        name="commit_architecture",
        description="Save the architectural modules and entry points.",
        args_model=CommitArchitectureArgs,
        checkpoint=40,
        status="Mapped Architecture & Modules",
        apply=_apply_architecture,
    ),
    Capability(
        name="commit_workflows",
        description="Save the primary user journeys or data flows.",
        args_model=CommitWorkflowsArgs,
        checkpoint=60,
        status="Traced User Journeys",
        apply=_apply_workflows,
    ),
    Capability(
        name="commit_artifacts",
        description="Save the drafted documentation artifacts.",
        args_model=CommitArtifactsArgs,
        checkpoint=80,
        status="Drafted Documentation Artifacts",
        apply=_apply_artifacts,
    ),
    Capability(
        name="commit_benchmarks",
        description="Save 3-5 specific, code-grounded QA questions to verify context understanding.",
        args_model=CommitBenchmarksArgs,
        checkpoint=95,
        status="Verified Context with QA",
        apply=_apply_benchmarks,
    ),
    Capability(
        name="signal_complete",
        description="Signal that all data has been analyzed and committed.",
        args_model=SignalCompleteArgs,
        checkpoint=100,
        status="Analysis Finalized",
        terminal=True,
    ),
)

CAPABILITIES_BY_NAME: dict[str, Capability] = {c.name: c for c in CAPABILITIES}


def get_capability(name: str) -> Optional[Capability]:
    return CAPABILITIES_BY_NAME.get(name)


def commit_capabilities(capabilities: tuple[Capability, ...] = CAPABILITIES) -> list[Capability]:
    """The non-terminal capabilities, in checkpoint order."""
    return [c for c in capabilities if not c.terminal]
