"""Optional LLM co-reference merge of tiered entities.

The provider is asked which names denote the same individual. Its answer is treated as a
suggestion: each merge group is validated against the live entity set and applied by a pure
function. Any provider or parsing failure leaves the entity lists untouched and is reported
through `CorefStats.error`.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml
from loguru import logger
from pydantic import BaseModel, Field

from charindex.normalization.models import AppliedMerge, CorefStats, Entity, SkippedMerge, VariantForm
from charindex.utils.config import CorefConfig
from charindex.utils.llm_client import CompletionProvider, CompletionRequest, TokenUsage

PROMPT_KEY = "coref_merge"
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class CorefResponseError(ValueError):
    """The provider answered, but not with a usable merge list."""


class MergeOutcome(BaseModel):
    entities: List[Entity] = Field(default_factory=list)
    applied: List[AppliedMerge] = Field(default_factory=list)
    skipped: List[SkippedMerge] = Field(default_factory=list)


class CorefDebug(BaseModel):
    prompt: str = ""
    raw_response: str = ""
    parsed_merges: List[Any] = Field(default_factory=list)


class CorefResult(BaseModel):
    confirmed: List[Entity] = Field(default_factory=list)
    candidates: List[Entity] = Field(default_factory=list)
    stats: CorefStats = Field(default_factory=CorefStats)
    debug: Optional[CorefDebug] = None


class CorefMerger:
    """Ask a completion provider for alias groups and fold them into the entity lists."""

    def __init__(self, provider: CompletionProvider, config: CorefConfig | None = None) -> None:
        self.provider = provider
        self.config = config or CorefConfig()
        self.prompts = self._load_prompts(Path(self.config.prompts_file))

    def resolve(self, confirmed: List[Entity], candidates: List[Entity]) -> CorefResult:
        entities = [*confirmed, *candidates]
        names = [(e.canonical_name, e.mentions) for e in entities]
        logger.info("Running co-reference merge", entities=len(entities))

        try:
            merges, usage, prompt, raw = self.request_merges(names)
        except Exception as exc:
            logger.warning("Co-reference merge skipped", error=str(exc))
            return CorefResult(
                confirmed=confirmed,
                candidates=candidates,
                stats=CorefStats(error=f"LLM call failed: {exc}"),
            )

        outcome = apply_merges(entities, merges)

        confirmed_ids = {e.id for e in confirmed}
        confirmed_names = {e.canonical_name for e in confirmed}
        merged_confirmed: List[Entity] = []
        merged_candidates: List[Entity] = []
        for entity in outcome.entities:
            was_confirmed = entity.id in confirmed_ids or any(
                name in confirmed_names for name in entity.merged_from or []
            )
            (merged_confirmed if was_confirmed else merged_candidates).append(entity)

        stats = CorefStats(
            groups_identified=len(merges),
            entities_merged=sum(len(m.merged) for m in outcome.applied),
            applied_merges=outcome.applied,
            skipped_merges=outcome.skipped,
            llm_tokens_used=usage,
        )
        logger.info(
            "Co-reference merge applied",
            groups=stats.groups_identified,
            merged=stats.entities_merged,
            skipped=len(stats.skipped_merges),
        )
        return CorefResult(
            confirmed=merged_confirmed,
            candidates=merged_candidates,
            stats=stats,
            debug=CorefDebug(prompt=prompt, raw_response=raw, parsed_merges=merges),
        )

    def request_merges(
        self, names: Sequence[Tuple[str, int]]
    ) -> Tuple[List[Any], TokenUsage, str, str]:
        """Return `(merges, token_usage, user_prompt, raw_response)`.

        Raises whatever the provider raises, `json.JSONDecodeError` for broken JSON and
        `CorefResponseError` for a response without a `merges` list.
        """
        if not names:
            return [], TokenUsage(), "", ""

        system, user = self.render_prompt(names)
        response = self.provider.complete(
            CompletionRequest(
                system_instruction=system,
                user_message=user,
                max_tokens=self.config.llm.max_tokens,
                temperature=self.config.llm.temperature,
            )
        )
        logger.debug("Co-reference response received", usage=response.token_usage.model_dump())
        return parse_merges(response.generated_text), response.token_usage, user, response.generated_text

    def render_prompt(self, names: Sequence[Tuple[str, int]]) -> Tuple[str, str]:
        ordered = sorted(names, key=lambda item: -item[1])
        names_list = "\n".join(f"{name} ({mentions})" for name, mentions in ordered)

        prompt = self.prompts.get(PROMPT_KEY) or {}
        system = str(prompt.get("system", "")).strip()
        user_template = str(prompt.get("user_template", "{names_list}"))
        return system, user_template.format(names_list=names_list)

    @staticmethod
    def _load_prompts(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Co-reference prompt template not found: {path}")
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Prompt template root must be a mapping/dict: {path}")
        if PROMPT_KEY not in data:
            raise KeyError(f"Prompt key not found in template: {PROMPT_KEY}")
        return data


def parse_merges(text: str) -> List[Any]:
    """Pull the `merges` list out of a free-form provider answer."""
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise CorefResponseError("No JSON found in LLM response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict) or not isinstance(parsed.get("merges"), list):
        raise CorefResponseError("Invalid response structure: missing merges array")
    return parsed["merges"]


def apply_merges(entities: Sequence[Entity], merges: Sequence[Any]) -> MergeOutcome:
    """Fold each merge group into its highest-mention entity.

    The input entities are not modified. A group naming fewer than two live entities is
    skipped with a reason; the remaining groups are still applied.
    """
    live: Dict[str, Entity] = {e.canonical_name: e.model_copy(deep=True) for e in entities}
    outcome = MergeOutcome()

    for group in merges:
        if not isinstance(group, list) or len(group) < 2:
            outcome.skipped.append(SkippedMerge(group=group, reason="Invalid group structure"))
            continue

        matched: List[Entity] = []
        for name in group:
            entity = live.get(name) if isinstance(name, str) else None
            if entity is not None and all(entity.id != m.id for m in matched):
                matched.append(entity)

        if len(matched) < 2:
            outcome.skipped.append(
                SkippedMerge(
                    group=group,
                    reason=f"Only {len(matched)} of {len(group)} names found in entities",
                )
            )
            continue

        matched.sort(key=lambda e: -e.mentions)
        primary, others = matched[0], matched[1:]
        logger.debug(
            "Merging entities",
            primary=primary.canonical_name,
            merged=[e.canonical_name for e in others],
        )

        for other in others:
            primary.variants.extend(other.variants)
            if all(v.form != other.canonical_name for v in primary.variants):
                remainder = other.mentions - sum(v.count for v in other.variants)
                primary.variants.append(VariantForm(form=other.canonical_name, count=max(remainder, 0)))
            primary.mentions += other.mentions
            primary.merged_from = [*(primary.merged_from or []), other.canonical_name]
            if other.first_appearance.sort_key() < primary.first_appearance.sort_key():
                primary.first_appearance = other.first_appearance
            del live[other.canonical_name]

        outcome.applied.append(
            AppliedMerge(
                primary=primary.canonical_name,
                merged=[e.canonical_name for e in others],
                new_mention_count=primary.mentions,
            )
        )

    outcome.entities = sorted(live.values(), key=lambda e: -e.mentions)
    return outcome
