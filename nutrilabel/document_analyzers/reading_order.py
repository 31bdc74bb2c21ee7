"""
Reading order analysis for turning recognized fragments into label text.
"""

import logging
from typing import List

from ..models import TextFragment

logger = logging.getLogger(__name__)

ROW_THRESHOLD = 0.05


class ReadingOrderAnalyzer:
    """
    Orders text fragments top-to-bottom, then left-to-right.

    Fragments are grouped into rows: after sorting by vertical centre, a
    fragment joins the current row while its centre is within
    ``row_threshold`` of the row's first fragment. Rows are then ordered
    top-to-bottom and fragments within a row by horizontal centre.
    """

    def __init__(self, row_threshold: float = ROW_THRESHOLD):
        self.row_threshold = row_threshold

    def group_rows(self, fragments: List[TextFragment]) -> List[List[TextFragment]]:
        """Cluster fragments into rows in reading order."""
        if not fragments:
            return []

        by_height = sorted(fragments, key=lambda f: f.bounding_box.mid_y)

        rows = []
        current_row = [by_height[0]]
        row_anchor = by_height[0].bounding_box.mid_y

        for fragment in by_height[1:]:
            if fragment.bounding_box.mid_y - row_anchor <= self.row_threshold:
                current_row.append(fragment)
            else:
                rows.append(current_row)
                current_row = [fragment]
                row_anchor = fragment.bounding_box.mid_y

        rows.append(current_row)
        return [sorted(row, key=lambda f: f.bounding_box.mid_x) for row in rows]

    def order(self, fragments: List[TextFragment]) -> List[TextFragment]:
        """Flatten rows into a single ordered list."""
        return [fragment for row in self.group_rows(fragments) for fragment in row]

    def linearize(self, fragments: List[TextFragment]) -> str:
        """
        Join fragments into one text blob.

        Fragments in a row are joined with a space, rows with a newline.
        """
        rows = self.group_rows(fragments)
        logger.debug(f"Linearized {len(fragments)} fragments into {len(rows)} rows")
        return "\n".join(" ".join(fragment.text for fragment in row) for row in rows)
