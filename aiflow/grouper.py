from loguru import logger

from .models import DiffChunk
from .splitter import split_oversized_unit
from .tokens import estimate_tokens


def pack(units, max_tokens):
    """
    Greedily groups diff units, in order, into as few chunks as possible
    while keeping each chunk's estimated size within `max_tokens`.
    Units that don't fit in a chunk of their own are split further and each
    piece becomes a standalone chunk.
    """
    chunks = []
    current = DiffChunk()

    for unit in units:
        unit_tokens = estimate_tokens(unit.content + "\n")

        if unit_tokens > max_tokens:
            if current:
                chunks.append(current)
            for piece in split_oversized_unit(unit.content, max_tokens):
                chunks.append(DiffChunk(content=piece, files=[unit.file_path], token_count=estimate_tokens(piece)))
            current = DiffChunk()
            continue

        if current and current.token_count + unit_tokens > max_tokens:
            chunks.append(current)
            current = DiffChunk()

        current.content += unit.content + "\n"
        current.files.append(unit.file_path)
        current.token_count += unit_tokens

    if current:
        chunks.append(current)

    logger.debug(f"Grouped {len(units)} file diffs into {len(chunks)} batches")
    return chunks
