"""Extract search index records from reStructuredText documentation sources."""

import logging
import re
import unicodedata
from pathlib import Path

import docutils.frontend  # type: ignore[import-untyped]
import docutils.nodes  # type: ignore[import-untyped]
import docutils.parsers.rst  # type: ignore[import-untyped]
import docutils.utils  # type: ignore[import-untyped]
from docutils.parsers.rst import directives  # type: ignore[import-untyped]

from documenter_search_index.models import DOCSTRING_CATEGORIES, Category, ParsedPage, SearchRecord

logger = logging.getLogger(__name__)


class docstring(docutils.nodes.General, docutils.nodes.Element):  # type: ignore[misc]  # noqa: N801
    """Doctree node holding one documented symbol."""


class DocstringDirective(docutils.parsers.rst.Directive):  # type: ignore[misc]
    """``.. docstring:: Name`` directive with a ``:category:`` option.

    The directive body is parsed as regular reStructuredText. An unknown
    category is logged and replaced by ``function``.
    """

    required_arguments = 1
    final_argument_whitespace = True
    has_content = True
    option_spec = {"category": directives.unchanged}

    def run(self) -> list[docutils.nodes.Node]:
        """Build the docstring node.

        Returns:
            List containing the docstring node.
        """
        node = docstring()
        node["name"] = self.arguments[0].strip()
        category = (self.options.get("category") or Category.FUNCTION.value).strip().lower()
        if category not in DOCSTRING_CATEGORIES:
            logger.warning(
                "%s:%d: unknown docstring category %r for %s, using %r",
                self.state.document["source"],
                self.lineno,
                category,
                node["name"],
                Category.FUNCTION.value,
            )
            category = Category.FUNCTION.value
        node["category"] = category
        self.state.nested_parse(self.content, self.content_offset, node)
        return [node]


directives.register_directive("docstring", DocstringDirective)


def slugify(text: str) -> str:
    """Turn a heading into an anchor the way the documentation generator does.

    Args:
        text: Heading text.

    Returns:
        Anchor without the leading ``#``.
    """
    slug = re.sub(r"\s+", "-", text.strip())
    slug = re.sub(r"^\d+", "", slug)
    slug = slug.replace("&", "-and-")
    slug = "".join(
        char for char in slug if char == "-" or char.isdigit() or unicodedata.category(char)[0] in ("L", "P")
    )
    slug = re.sub(r"--+", "-", slug)
    return slug.strip("-")


def clean_text(text: str) -> str:
    """Normalise rendered text for the index.

    Reduces unresolved roles (``:role:`text``` to ``text``) and collapses whitespace.

    Args:
        text: Rendered node text.

    Returns:
        Cleaned single-line text.
    """
    text = re.sub(r":[\w-]+:`([^`]+)`", r"\1", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


class PageTitleVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor to find the first heading of a document."""

    optional = ("docstring",)

    def __init__(self, document: docutils.nodes.document) -> None:
        """Initialise page title visitor.

        Args:
            document: Docutils document tree.
        """
        super().__init__(document)
        self.title: str | None = None

    def visit_title(self, node: docutils.nodes.title) -> None:
        """Record the first section heading.

        Args:
            node: Title node.
        """
        if self.title is None and isinstance(node.parent, docutils.nodes.section):
            self.title = clean_text(node.astext())

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op).

        Args:
            node: Any node.
        """

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Default departure handler (no-op).

        Args:
            node: Any node.
        """


class RecordVisitor(docutils.nodes.GenericNodeVisitor):  # type: ignore[misc]
    """Visitor emitting search records in document order."""

    def __init__(self, document: docutils.nodes.document, page: str, location: str) -> None:
        """Initialise record visitor.

        Args:
            document: Docutils document tree.
            page: Page name stored on every record.
            location: Page location that anchors are appended to.
        """
        super().__init__(document)
        self.page = page
        self.location = location
        self.records: list[SearchRecord] = []
        self._anchor_counts: dict[str, int] = {}

    def _anchor(self, name: str) -> str:
        count = self._anchor_counts.get(name, 0) + 1
        self._anchor_counts[name] = count
        anchor = name if count == 1 else f"{name}-{count}"
        return f"{self.location}#{anchor}"

    def visit_title(self, node: docutils.nodes.title) -> None:
        """Emit a section record for a section heading.

        Args:
            node: Title node.

        Raises:
            docutils.nodes.SkipNode: Always raised; heading text is not a paragraph.
        """
        if isinstance(node.parent, docutils.nodes.section):
            title = clean_text(node.astext())
            self.records.append(
                SearchRecord(
                    location=self._anchor(slugify(title)),
                    page=self.page,
                    title=title,
                    text="",
                    category=Category.SECTION.value,
                )
            )
        raise docutils.nodes.SkipNode

    def visit_paragraph(self, node: docutils.nodes.paragraph) -> None:
        """Emit a page record for a paragraph.

        Args:
            node: Paragraph node.

        Raises:
            docutils.nodes.SkipNode: Always raised; the paragraph is consumed whole.
        """
        text = clean_text(node.astext())
        if text:
            self.records.append(
                SearchRecord(
                    location=self.location,
                    page=self.page,
                    title=self.page,
                    text=text,
                    category=Category.PAGE.value,
                )
            )
        raise docutils.nodes.SkipNode

    def visit_docstring(self, node: docstring) -> None:
        """Emit a record for a documented symbol.

        Args:
            node: Docstring node.

        Raises:
            docutils.nodes.SkipNode: Always raised; the body belongs to this record.
        """
        blocks = []
        for child in node.children:
            if isinstance(child, docutils.nodes.system_message):
                continue
            if isinstance(child, docutils.nodes.literal_block):
                blocks.append(child.astext())
            else:
                blocks.append(clean_text(child.astext()))
        self.records.append(
            SearchRecord(
                location=self._anchor(node["name"]),
                page=self.page,
                title=node["name"],
                text="\n\n".join(block for block in blocks if block),
                category=node["category"],
            )
        )
        raise docutils.nodes.SkipNode

    def visit_literal_block(self, node: docutils.nodes.literal_block) -> None:
        """Skip code blocks.

        Args:
            node: Literal block node.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip code blocks.
        """
        raise docutils.nodes.SkipNode

    def visit_comment(self, node: docutils.nodes.comment) -> None:
        """Skip comments.

        Args:
            node: Comment node.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip comments.
        """
        raise docutils.nodes.SkipNode

    def visit_system_message(self, node: docutils.nodes.system_message) -> None:
        """Skip parser diagnostics.

        Args:
            node: System message node.

        Raises:
            docutils.nodes.SkipNode: Always raised to skip diagnostics.
        """
        raise docutils.nodes.SkipNode

    def default_visit(self, node: docutils.nodes.Node) -> None:
        """Default visit handler (no-op).

        Args:
            node: Any node.
        """

    def default_departure(self, node: docutils.nodes.Node) -> None:
        """Default departure handler (no-op).

        Args:
            node: Any node.
        """


class PageParser:
    """Parses reStructuredText pages into search index records."""

    def parse_file(self, file_path: Path, base_path: Path) -> ParsedPage | None:
        """Parse an RST file and extract its search records.

        Args:
            file_path: Path to the RST file.
            base_path: Base path of the documentation directory.

        Returns:
            ParsedPage instance or None if the file cannot be read.
        """
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Cannot read %s: %s", file_path, exc)
            return None

        relative_path = file_path.relative_to(base_path)
        doctree = self._parse_rst(source, file_path)
        title = self._extract_title(doctree, file_path)
        location = self._compute_location(relative_path)

        visitor = RecordVisitor(doctree, page=title, location=location)
        doctree.walk(visitor)

        return ParsedPage(
            path=relative_path.as_posix(),
            title=title,
            location=location,
            records=visitor.records,
        )

    def _parse_rst(self, source: str, file_path: Path) -> docutils.nodes.document:
        """Parse RST source into docutils document tree.

        Args:
            source: RST source text.
            file_path: Path to the file (for error reporting).

        Returns:
            Docutils document tree.
        """
        parser = docutils.parsers.rst.Parser()
        settings = docutils.frontend.get_default_settings(docutils.parsers.rst.Parser)
        settings.report_level = 5  # Suppress warnings
        document = docutils.utils.new_document(str(file_path), settings)
        parser.parse(source, document)
        return document

    def _extract_title(self, doctree: docutils.nodes.document, file_path: Path) -> str:
        """Find the page name.

        Args:
            doctree: Docutils document tree.
            file_path: Path to the file for fallback title extraction.

        Returns:
            First heading, or a title derived from the file name.
        """
        visitor = PageTitleVisitor(doctree)
        doctree.walk(visitor)
        if visitor.title:
            return visitor.title
        return file_path.stem.replace("-", " ").replace("_", " ").title()

    def _compute_location(self, relative_path: Path) -> str:
        """Compute the page location used as the anchor prefix.

        Args:
            relative_path: Path relative to the documentation directory.

        Returns:
            ``""`` for the root index, otherwise the page directory with a trailing slash.
        """
        parts = list(relative_path.with_suffix("").parts)
        if parts and parts[-1] == "index":
            parts.pop()
        if not parts:
            return ""
        return "/".join(parts) + "/"
