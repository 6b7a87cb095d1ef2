"""Build one snippet per entity-bearing sentence."""

from __future__ import annotations

from typing import Iterable, List

from loguru import logger

from charindex.ingestion.chapters import Chapter, split_paragraphs
from charindex.ingestion.sentences import split_sentences
from charindex.retrieval.mention_matcher import MentionMatcher
from charindex.retrieval.models import Snippet, SnippetLocation, SnippetMention, SnippetText, snippet_id


class SnippetExtractor:
    """Walk chapters, paragraphs and sentences and emit before/match/after windows."""

    def __init__(self, matcher: MentionMatcher, context_sentences: int = 1) -> None:
        self.matcher = matcher
        self.context_sentences = context_sentences

    def extract(self, chapters: Iterable[Chapter]) -> List[Snippet]:
        snippets: List[Snippet] = []
        width = self.context_sentences

        for chapter in chapters:
            logger.debug("Extracting snippets", chapter=chapter.number, title=chapter.title)

            for para_index, paragraph in enumerate(split_paragraphs(chapter.text)):
                sentences = split_sentences(paragraph)

                for sent_index, sentence in enumerate(sentences):
                    matched = self.matcher.find(sentence, "match")
                    if not matched:
                        continue

                    before = " ".join(sentences[max(0, sent_index - width):sent_index])
                    after = " ".join(sentences[sent_index + 1:sent_index + 1 + width])
                    mentions: List[SnippetMention] = [
                        *self.matcher.find(before, "before"),
                        *matched,
                        *self.matcher.find(after, "after"),
                    ]

                    snippets.append(
                        Snippet(
                            id=snippet_id(len(snippets)),
                            chapter=chapter.number,
                            chapter_title=chapter.title,
                            location=SnippetLocation(paragraph_index=para_index, sentence_index=sent_index),
                            text=SnippetText(before=before, match=sentence, after=after),
                            entities=list(dict.fromkeys(m.entity for m in mentions)),
                            mentions=mentions,
                        )
                    )

        logger.info("Extracted raw snippets", snippets=len(snippets))
        return snippets
