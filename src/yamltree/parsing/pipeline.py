#!/usr/bin/env python3
"""
YAMLTREE PARSING PIPELINE
-------------------------
Central coordinator for turning raw text into document roots. Each '---'
segment runs through the same strict sequence: line scanning, then tree
building. Offsets and line numbers stay absolute across segments, so an
error in the third document still points at the right line of the input.
"""

import logging
from typing import List

from yamltree.parsing.context import ParseContext
from yamltree.parsing.lexer import LineLexer, clean_artifacts
from yamltree.parsing.structurer import TreeStructurer

logger = logging.getLogger("yamltree.pipeline")


class ParsingPipeline:
    """
    The Orchestrator: runs lexing and structuring segment by segment.
    Fails fast on the first ParseError; no partial result is returned.
    """

    def __init__(self):
        self.structurer = TreeStructurer()

    def run(self, input_text: str) -> List[ParseContext]:
        """
        Returns one ParseContext per non-empty document segment.
        Segments holding no records (a leading '---', '--- ---') are skipped.
        """
        source = clean_artifacts(input_text)
        lexer = LineLexer(source)
        contexts: List[ParseContext] = []
        offset, line = 0, 1
        segment = 0

        while True:
            # --- PHASE 1: LINE SCANNING ---
            scan = lexer.scan(offset, line)
            context = ParseContext(
                source=source,
                index=segment,
                start_line=line,
                end_line=scan.end_line,
                records=scan.records,
            )

            # --- PHASE 2: TREE BUILDING ---
            if context.records:
                self.structurer.build(context)
                contexts.append(context)
            else:
                logger.debug("Skipping empty segment %d at line %d", segment, line)

            if not scan.document_break:
                break
            offset, line = scan.end_offset, scan.end_line
            segment += 1

        logger.debug("Parsed %d document(s) from %d segment(s)", len(contexts), segment + 1)
        return contexts
