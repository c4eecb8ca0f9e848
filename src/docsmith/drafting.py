"""Documentation generation steps grounded on a ResultContext.

These are the steps that run after analysis: plan the documentation files,
outline each file, draft sections with retrieved grounding snippets, refine
drafts on request, and import documentation already in the repository.

Generation failures degrade instead of raising: planning falls back to a
single README, outlining to a single introduction, drafting to an error
notice and refinement to the unchanged text.
"""

import json
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import JsonOutputParser, StrOutputParser
from pydantic import BaseModel, TypeAdapter

from .logging_config import get_logger
from .models import ResultContext, SourceRecord
from .rag.retriever import DEFAULT_TOP_K, RetrievalEngine, format_contexts_for_prompt

logger = get_logger(__name__)

DRAFT_ERROR_NOTICE = "Error generating content. Please try again."


class DocFramework(str, Enum):
    EXISTING = "Existing Documentation"
    SINGLE_FILE = "Single File (README)"
    VITEPRESS = "VitePress"
    DOCUSAURUS = "Docusaurus"
    FUMADOCS = "Fumadocs"
    DOCFX = "DocFX"


def _short_id() -> str:
    return uuid.uuid4().hex[:7]


@dataclass
class Section:
    """One editable section of a documentation file."""

    title: str
    description: str  # Instructions for the writer model
    id: str = field(default_factory=_short_id)
    content: Optional[str] = None
    is_drafted: bool = False


@dataclass
class DocFile:
    """A documentation file and its planned sections."""

    path: str
    title: str
    description: str
    id: str = field(default_factory=_short_id)
    sections: list[Section] = field(default_factory=list)
    is_loaded: bool = False  # Outline generated
    is_existing: bool = False  # Imported from the repository


class _FilePlan(BaseModel):
    path: str
    title: str
    description: str


class _SectionPlan(BaseModel):
    title: str
    description: str
    id: Optional[str] = None


STRUCTURE_PROMPT = """You are a Documentation Architect.
Design a file structure for a {framework} documentation site for the project described below.

Project Analysis:
{artifacts}

Framework Standards:
- VitePress / Docusaurus: .md files in docs/ with a logical sidebar (Guide, Config, API).
- DocFX: .md files in articles/ and api/ plus an index.md.
- Fumadocs: .mdx files in content/docs/.
- Single File: only a detailed README.md and CONTRIBUTING.md.

Output a JSON array of files, each with "path", "title" and "description" (what goes in the file)."""

OUTLINE_PROMPT = """You are a Technical Writer.
Create a detailed content plan (outline) for a file named "{file_name}".

File Purpose: {purpose}

Project Context:
{artifacts}

Return a JSON array of sections with "id", "title" and "description". Each description is a
prompt for the writer that names the specific details from the context to include."""

DRAFT_PROMPT = """You are a Technical Writer. Write the content for one section of a documentation file.

File: "{file_name}"
Section Title: "{title}"

Instructions:
{instructions}

Context Information:
{artifacts}

Relevant Source Snippets:
{snippets}

Guidelines:
- Markdown with clear headings, code blocks and lists.
- Do not repeat the section title as a heading; start directly with content.
- Be concise but comprehensive."""

REFINE_PROMPT = """You are a collaborative editor.

Original Text:
{content}

User Request: {instruction}

Output the rewritten markdown only. Maintain the rest of the context."""


def _artifacts_json(context: ResultContext) -> str:
    return json.dumps(context.artifacts.to_dict(), indent=2)


def plan_file_structure(llm: BaseChatModel, framework: DocFramework, context: ResultContext) -> list[DocFile]:
    """Propose documentation files for a framework."""
    chain = llm | JsonOutputParser()
    try:
        raw = chain.invoke(STRUCTURE_PROMPT.format(framework=framework.value, artifacts=_artifacts_json(context)))
        plans = TypeAdapter(list[_FilePlan]).validate_python(raw)
    except Exception as e:
        logger.error("Structure planning failed: %s", e)
        return [DocFile(path="README.md", title="Readme", description="Project root")]
    return [DocFile(path=p.path, title=p.title, description=p.description) for p in plans]


def outline_document(llm: BaseChatModel, file_name: str, purpose: str, context: ResultContext) -> list[Section]:
    """Plan the sections of one documentation file."""
    chain = llm | JsonOutputParser()
    try:
        raw = chain.invoke(OUTLINE_PROMPT.format(file_name=file_name, purpose=purpose, artifacts=_artifacts_json(context)))
        plans = TypeAdapter(list[_SectionPlan]).validate_python(raw)
    except Exception as e:
        logger.error("Outline generation for %s failed: %s", file_name, e)
        return [Section(title="Introduction", description="Overview of the topic")]
    return [
        Section(title=p.title, description=p.description, id=p.id or _short_id())
        for p in plans
    ]


def draft_section(
    llm: BaseChatModel,
    section: Section,
    file_name: str,
    context: ResultContext,
    retriever: Optional[RetrievalEngine] = None,
    top_k: int = DEFAULT_TOP_K,
) -> str:
    """Write markdown for a section, grounded on the most relevant indexed chunks.

    Without a retriever, or with an empty vector index, the draft relies on
    the analysis artifacts alone.
    """
    snippets = []
    if retriever is not None and context.vector_index:
        query = f"{section.title}\n{section.description}"
        snippets = retriever.retrieve(query, context.vector_index, top_k=top_k)
        logger.debug("Grounding %r on %s snippets", section.title, len(snippets))

    prompt = DRAFT_PROMPT.format(
        file_name=file_name,
        title=section.title,
        instructions=section.description,
        artifacts=_artifacts_json(context),
        snippets=format_contexts_for_prompt(snippets) or "(none)",
    )
    try:
        return (llm | StrOutputParser()).invoke(prompt)
    except Exception as e:
        logger.error("Drafting %r failed: %s", section.title, e, exc_info=True)
        return DRAFT_ERROR_NOTICE


def refine_content(llm: BaseChatModel, content: str, instruction: str) -> str:
    """Rewrite content per a user instruction; returns the input on failure."""
    try:
        refined = (llm | StrOutputParser()).invoke(REFINE_PROMPT.format(content=content, instruction=instruction))
    except Exception as e:
        logger.error("Refinement failed: %s", e)
        return content
    return refined or content


_HEADING = re.compile(r"^(#{1,2})\s+(.+)$")


def parse_markdown_sections(content: str) -> list[Section]:
    """Split markdown into drafted sections at H1/H2 headings.

    Text before the first heading becomes an "Introduction" section. Heading
    lines are not part of section content.
    """
    sections = []
    title = "Introduction"
    buffer: list[str] = []

    def flush() -> None:
        if buffer or title != "Introduction":
            text = "\n".join(buffer).strip()
            sections.append(Section(
                title=title,
                description=f"Existing content for {title}",
                content=text,
                is_drafted=True,
            ))

    for line in content.split("\n"):
        match = _HEADING.match(line)
        if match:
            flush()
            title = match.group(2).strip()
            buffer = []
        else:
            buffer.append(line)
    flush()

    if not sections:
        sections.append(Section(title="Content", description="Existing content", content=content, is_drafted=True))
    return sections


def is_documentation_file(path: str) -> bool:
    lowered = path.lower()
    return lowered.endswith((".md", ".mdx")) or "docs/" in lowered


def import_existing_docs(records: Iterable[SourceRecord]) -> list[DocFile]:
    """Turn documentation already in the repository into editable DocFiles."""
    docs = []
    for record in records:
        if not is_documentation_file(record.path):
            continue
        name = record.path.rsplit("/", 1)[-1]
        docs.append(DocFile(
            path=record.path,
            title=re.sub(r"\.mdx?$", "", name) or "Untitled",
            description="Existing file imported from repository.",
            sections=parse_markdown_sections(record.content),
            is_loaded=True,
            is_existing=True,
        ))
    return docs
