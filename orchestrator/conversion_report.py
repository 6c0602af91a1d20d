"""
Conversion report formatting for console display and JSON export.
"""

import json
import logging
from datetime import datetime
from itertools import zip_longest
from typing import List, Optional

from models import BatchResult

COLUMN_GAP = 4


class ConversionReport:
    """Formats a BatchResult for the end of a run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize conversion report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('medium_hugo_migrator.orchestrator.conversion_report')

    def format_console_report(self, batch: BatchResult) -> str:
        """
        Format report for console display.

        Ignored and errored filenames are listed side by side, each column
        numbered from 01.

        Args:
            batch: Result of the conversion run

        Returns:
            Formatted console string
        """
        sections = []

        # Header
        sections.append("=" * 60)
        sections.append("CONVERSION REPORT")
        sections.append("=" * 60)
        sections.append("")

        totals = batch.totals
        sections.append("Summary:")
        sections.append(f"  Posts processed: {batch.total}")
        sections.append(f"  Converted:       {batch.success_count}")
        sections.append(f"  Ignored:         {len(batch.ignored)}")
        sections.append(f"  Errored:         {len(batch.errored)}")
        sections.append(f"  Username:        {batch.username or 'Not found'}")
        sections.append(
            f"  Images:          {totals.get('images_downloaded', 0)} downloaded, "
            f"{totals.get('images_failed', 0)} failed"
        )
        sections.append(
            f"  Gists:           {totals.get('gists_converted', 0)} converted, "
            f"{totals.get('gist_failures', 0)} failed"
        )
        sections.append(f"  Self links:      {totals.get('self_links_rewritten', 0)} rewritten")
        if totals.get('tag_fetch_failed', 0) > 0:
            sections.append(f"  Tag fetches:     {totals['tag_fetch_failed']} failed")
        sections.append("")

        if batch.ignored or batch.errored:
            sections.extend(self._two_columns("Ignored", batch.ignored, "Errored", batch.errored))
            sections.append("")

        sections.append(f"{batch.success_count} posts successfully converted to Hugo compatible Markdown")
        if batch.output_path:
            sections.append(f"Output: {batch.output_path}")
        sections.append("=" * 60)

        return "\n".join(sections)

    @staticmethod
    def _two_columns(left_title: str, left: List[str], right_title: str, right: List[str]) -> List[str]:
        left_cells = [f"{i:02d}: {name}" for i, name in enumerate(left, start=1)]
        right_cells = [f"{i:02d}: {name}" for i, name in enumerate(right, start=1)]

        width = max([len(left_title)] + [len(cell) for cell in left_cells]) + COLUMN_GAP

        lines = [f"{left_title:<{width}}{right_title}".rstrip()]
        lines.append(f"{'-' * len(left_title):<{width}}{'-' * len(right_title)}")
        for left_cell, right_cell in zip_longest(left_cells, right_cells, fillvalue=''):
            lines.append(f"{left_cell:<{width}}{right_cell}".rstrip())
        return lines

    def export_json_report(self, batch: BatchResult, filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            batch: Result of the conversion run
            filepath: Output file path
        """
        report = batch.to_dict()
        report['timestamp'] = datetime.now().isoformat()

        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")


__all__ = ['ConversionReport']
