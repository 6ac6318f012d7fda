"""
Client for the Helm command-line tool.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .command_runner import CommandRunner

logger = logging.getLogger(__name__)


class HelmClient:
    """
    Wraps the two Helm commands the repository manager needs.

    Helm owns chart validation and index generation; this class only
    builds the command lines and interprets exit statuses.
    """

    def __init__(self, binary: str = "helm", runner: Optional[CommandRunner] = None):
        """
        Initialize Helm client.

        Args:
            binary: Helm executable (``$HELM_BIN`` when running as a plugin)
            runner: Command runner used to start helm
        """
        self.binary = binary
        self.runner = runner or CommandRunner()

    def ensure_available(self) -> None:
        """Raise MissingDependencyError if helm is not installed."""
        self.runner.require(self.binary)

    def lint(self, chart_path: Union[str, Path]) -> bool:
        """
        Run ``helm lint`` on a chart.

        Returns:
            True if the chart passes lint
        """
        result = self.runner.run([self.binary, "lint", str(chart_path)])
        if not result.ok:
            logger.info(f"helm lint failed for {chart_path}: {result.stdout.strip() or result.stderr.strip()}")
        return result.ok

    def repo_index(
        self,
        directory: Union[str, Path],
        merge: Optional[Union[str, Path]] = None,
        url: Optional[str] = None
    ) -> Path:
        """
        Generate ``index.yaml`` for the charts in a directory.

        Args:
            directory: Directory holding packaged charts
            merge: Existing index to merge the new entries into
            url: Base URL written into the new entries

        Returns:
            Path of the generated index

        Raises:
            CommandError: If helm fails
        """
        args = [self.binary, "repo", "index", str(directory)]
        if merge is not None:
            args.extend(["--merge", str(merge)])
        if url is not None:
            args.extend(["--url", url])

        self.runner.check(args)

        index_path = Path(directory) / "index.yaml"
        logger.debug(f"Generated {index_path}")
        return index_path
