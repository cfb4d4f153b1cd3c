"""Build search indexes from a documentation source tree."""

import logging
import subprocess
import tempfile
from pathlib import Path

from documenter_search_index import search_index
from documenter_search_index.models import SearchIndex
from documenter_search_index.parser import PageParser

logger = logging.getLogger(__name__)


class DocsSearchIndexer:
    """Builds a search index from reStructuredText sources on disk or in a git repository."""

    DOCS_SUBDIR = "docs"
    SOURCE_SUFFIXES = (".rst", ".rest")
    VARIABLE_NAME = "documenterSearchIndex"

    def __init__(self, parser: PageParser | None = None, variable: str | None = None) -> None:
        """Initialise indexer.

        Args:
            parser: Page parser; a default PageParser is used when omitted.
            variable: JavaScript variable name for built indexes.
        """
        self.parser = parser or PageParser()
        self.variable = variable or self.VARIABLE_NAME

    def index_from_git(
        self,
        repo_url: str,
        branch: str = "main",
        docs_subdir: str | None = None,
        shallow: bool = True,
    ) -> SearchIndex:
        """Clone a repository and index its documentation directory.

        Args:
            repo_url: URL of the git repository.
            branch: Git branch to clone.
            docs_subdir: Documentation directory inside the repository.
            shallow: Whether to do a shallow, sparse clone.

        Returns:
            Search index built from the cloned sources.
        """
        docs_subdir = docs_subdir or self.DOCS_SUBDIR
        with tempfile.TemporaryDirectory() as temp_dir:
            repo_path = Path(temp_dir) / "repo"
            self._clone_repository(repo_url, repo_path, branch, docs_subdir, shallow)
            return self.index_from_path(repo_path / docs_subdir)

    def index_from_path(self, docs_path: Path) -> SearchIndex:
        """Index documentation from a local path.

        Args:
            docs_path: Path to the documentation directory.

        Returns:
            Search index with the records of every parsed page.

        Raises:
            ValueError: If the documentation path does not exist.
        """
        if not docs_path.exists():
            msg = f"Documentation path does not exist: {docs_path}"
            raise ValueError(msg)

        source_files = self._collect_sources(docs_path)
        logger.info("Found %d source files to index", len(source_files))

        index = SearchIndex(variable=self.variable)
        for file_path in source_files:
            page = self.parser.parse_file(file_path, docs_path)
            if page is None:
                logger.warning("Failed to parse: %s", file_path)
                continue
            index.records.extend(page.records)
            logger.debug("Indexed %s: %d records", page.path, len(page.records))

        logger.info("Indexed %d records from %d files", len(index), len(source_files))
        return index

    def rebuild_index(self, docs_path: Path, output_path: Path) -> int:
        """Build an index from scratch and overwrite the output file.

        Args:
            docs_path: Path to the documentation directory.
            output_path: Destination ``search_index.js`` path.

        Returns:
            Number of records written.
        """
        index = self.index_from_path(docs_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        search_index.dump(index, output_path)
        return len(index)

    def _collect_sources(self, docs_path: Path) -> list[Path]:
        """List source files with the root index page first.

        Args:
            docs_path: Path to the documentation directory.

        Returns:
            Source file paths in indexing order.
        """
        files = [path for path in docs_path.rglob("*") if path.is_file() and path.suffix in self.SOURCE_SUFFIXES]

        def order(path: Path) -> tuple[bool, str]:
            relative = path.relative_to(docs_path)
            return (relative.with_suffix("") != Path("index"), relative.as_posix())

        return sorted(files, key=order)

    def _clone_repository(self, repo_url: str, target_path: Path, branch: str, docs_subdir: str, shallow: bool) -> None:
        """Clone a documentation repository.

        Args:
            repo_url: URL of the git repository.
            target_path: Directory to clone into.
            branch: Git branch to clone.
            docs_subdir: Directory to keep in a sparse checkout.
            shallow: Whether to do a shallow clone.
        """
        cmd = ["git", "clone"]
        if shallow:
            cmd.extend(["--depth", "1", "--filter=blob:none", "--sparse"])
        cmd.extend(["--branch", branch, repo_url, str(target_path)])

        logger.info("Cloning %s...", repo_url)
        subprocess.run(cmd, check=True, capture_output=True)  # noqa: S603

        # Sparse checkout starts with only top-level files
        if shallow:
            logger.info("Setting up sparse checkout for %s...", docs_subdir)
            subprocess.run(  # noqa: S603
                ["git", "-C", str(target_path), "sparse-checkout", "set", docs_subdir],  # noqa: S607
                check=True,
                capture_output=True,
            )

        logger.info("Repository cloned successfully")
