"""Column boundary detection for whitespace-aligned tables.

Not wired into entity extraction yet; table blocks are only counted.
"""

from helpscope.parser.types import TableColumnBoundary

MIN_EDGE_COUNT = 2


def edge_gradient(lines: list[str]) -> list[int]:
    """Per column, count space/non-space transitions across all lines."""
    width = max((len(line) for line in lines), default=0)
    gradients = [0] * width
    for line in lines:
        for i in range(1, len(line)):
            prev_space = line[i - 1] == " "
            here_space = line[i] == " "
            if prev_space != here_space:
                gradients[i] += 1
    return gradients


def detect_table_columns(lines: list[str]) -> list[TableColumnBoundary]:
    """Return column ranges ``[start, end)`` for table-like lines.

    Adjacent edge columns merge into one boundary, and the final boundary
    is padded out to the widest line.
    """
    width = max((len(line) for line in lines), default=0)
    if width == 0:
        return []

    gradients = edge_gradient(lines)
    candidates = [i for i, value in enumerate(gradients) if value >= MIN_EDGE_COUNT]
    if not candidates:
        return []

    boundaries: list[TableColumnBoundary] = []
    last = 0
    for index in candidates:
        if index - last > 1:
            boundaries.append(TableColumnBoundary(start=last, end=index))
            last = index

    if not boundaries:
        boundaries.append(TableColumnBoundary(start=last, end=width))
    elif boundaries[-1].end < width:
        boundaries.append(TableColumnBoundary(start=boundaries[-1].end, end=width))
    return boundaries
