"""AnimationLibrary: the authoring store for animation records and chains."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from smil_timeline.animation.presets import PresetRegistry, preset_registry
from smil_timeline.geometry.reprojector import apply_deltas, build_delta_map
from smil_timeline.models.animation import AnimationChain, AnimationRecord, ChainEntry
from smil_timeline.models.elements import ElementSnapshot, TransformDelta
from smil_timeline.utils.config import settings

logger = logging.getLogger(__name__)

RecordInput = Union[AnimationRecord, Dict[str, Any]]


def new_animation_id() -> str:
    return f"anim-{uuid.uuid4().hex[:8]}"


def new_chain_id() -> str:
    return f"chain-{uuid.uuid4().hex[:8]}"


def _with_defaults(fields: Dict[str, Any]) -> Dict[str, Any]:
    fields = dict(fields)
    if not fields.get("dur"):
        fields["dur"] = settings.default_dur
    if not fields.get("fill"):
        fields["fill"] = settings.default_fill
    if fields.get("repeat_count") in (None, ""):
        fields["repeat_count"] = settings.default_repeat_count
    return fields


def _fields_of(record: RecordInput) -> Dict[str, Any]:
    if isinstance(record, AnimationRecord):
        return record.model_dump()
    fields = dict(record)
    if "from" in fields:
        fields["from_"] = fields.pop("from")
    return fields


class AnimationLibrary:
    """Owns the animation list and chains of one document.

    Records are immutable pydantic models; every update swaps in a new
    record so holders of the old list see no change.
    """

    def __init__(
        self,
        animations: Optional[Iterable[AnimationRecord]] = None,
        chains: Optional[Iterable[AnimationChain]] = None,
        elements: Optional[Iterable[ElementSnapshot]] = None,
        presets: Optional[PresetRegistry] = None,
    ) -> None:
        self._animations: List[AnimationRecord] = list(animations or [])
        self._chains: List[AnimationChain] = list(chains or [])
        self._elements: Dict[str, ElementSnapshot] = {el.id: el for el in elements or []}
        self._presets = presets or preset_registry

    # -- reads -------------------------------------------------------------------

    @property
    def animations(self) -> List[AnimationRecord]:
        return list(self._animations)

    @property
    def chains(self) -> List[AnimationChain]:
        return list(self._chains)

    @property
    def elements(self) -> List[ElementSnapshot]:
        return list(self._elements.values())

    def get(self, animation_id: str) -> Optional[AnimationRecord]:
        for anim in self._animations:
            if anim.id == animation_id:
                return anim
        return None

    def get_chain(self, chain_id: str) -> Optional[AnimationChain]:
        for chain in self._chains:
            if chain.id == chain_id:
                return chain
        return None

    def set_elements(self, elements: Iterable[ElementSnapshot]) -> None:
        self._elements = {el.id: el for el in elements}

    # -- records -------------------------------------------------------------------

    def add(self, record: RecordInput) -> AnimationRecord:
        fields = _fields_of(record)
        fields["id"] = fields.get("id") or new_animation_id()
        anim = AnimationRecord.model_validate(_with_defaults(fields))
        self._animations.append(anim)
        return anim

    def update(self, animation_id: str, **changes: Any) -> Optional[AnimationRecord]:
        current = self.get(animation_id)
        if current is None:
            return None
        if "from" in changes:
            changes["from_"] = changes.pop("from")
        fields = current.model_dump()
        if changes.get("mpath"):
            fields["path"] = None
        elif changes.get("path"):
            fields["mpath"] = None
        fields.update(changes)
        fields["id"] = animation_id
        updated = AnimationRecord.model_validate(_with_defaults(fields))
        self._animations = [updated if a.id == animation_id else a for a in self._animations]
        return updated

    def update_mpath(self, animation_id: str, path_id: str) -> Optional[AnimationRecord]:
        return self.update(animation_id, mpath=path_id, path=None)

    def remove(self, animation_id: str) -> None:
        self._animations = [a for a in self._animations if a.id != animation_id]

    def remove_many(self, animation_ids: Iterable[str]) -> Set[str]:
        """Drop records and their chain entries; returns the ids actually removed."""
        wanted = set(animation_ids)
        removed = {a.id for a in self._animations if a.id in wanted}
        if not removed:
            return removed
        self._animations = [a for a in self._animations if a.id not in removed]
        self.prune_chains(removed)
        return removed

    def clear(self) -> None:
        self._animations = []

    def replace_all(self, animations: Sequence[AnimationRecord]) -> None:
        self._animations = list(animations)

    # -- presets -----------------------------------------------------------------

    def apply_preset(self, name: str, target_id: str, **params: Any) -> List[AnimationRecord]:
        preset = self._presets.get(name)
        if preset is None:
            raise ValueError(f"Unknown preset: {name}")
        if not preset.accepts(self._elements.get(target_id)):
            logger.warning("Preset %s requires %s; %s does not match", name, preset.requires, target_id)
            return []
        return [self.add(fields) for fields in preset.build(target_id, **params)]

    # -- chains ------------------------------------------------------------------

    def create_chain(self, name: str, entries: Iterable[Union[ChainEntry, Dict[str, Any]]] = ()) -> AnimationChain:
        chain = AnimationChain(
            id=new_chain_id(),
            name=name,
            entries=[e if isinstance(e, ChainEntry) else ChainEntry.model_validate(e) for e in entries],
        )
        self._chains.append(chain)
        return chain

    def _replace_chain(self, chain: AnimationChain) -> AnimationChain:
        self._chains = [chain if c.id == chain.id else c for c in self._chains]
        return chain

    def update_chain(
        self, chain_id: str, name: Optional[str] = None, entries: Optional[Iterable[ChainEntry]] = None
    ) -> Optional[AnimationChain]:
        chain = self.get_chain(chain_id)
        if chain is None:
            return None
        update: Dict[str, Any] = {}
        if name is not None:
            update["name"] = name
        if entries is not None:
            update["entries"] = list(entries)
        return self._replace_chain(chain.model_copy(update=update))

    def _update_entry(self, chain_id: str, animation_id: str, **changes: Any) -> Optional[AnimationChain]:
        chain = self.get_chain(chain_id)
        if chain is None:
            return None
        entries = [
            ChainEntry.model_validate({**e.model_dump(), **changes}) if e.animation_id == animation_id else e
            for e in chain.entries
        ]
        return self._replace_chain(chain.model_copy(update={"entries": entries}))

    def update_chain_entry_delay(self, chain_id: str, animation_id: str, delay_seconds: float) -> Optional[AnimationChain]:
        return self._update_entry(chain_id, animation_id, delay_seconds=delay_seconds)

    def update_chain_entry_trigger(self, chain_id: str, animation_id: str, trigger: str) -> Optional[AnimationChain]:
        return self._update_entry(chain_id, animation_id, trigger=trigger)

    def remove_chain(self, chain_id: str) -> None:
        self._chains = [c for c in self._chains if c.id != chain_id]

    def prune_chains(self, animation_ids: Iterable[str]) -> None:
        """Drop chain entries for the given ids and any chain left empty."""
        removed = set(animation_ids)
        kept = []
        for chain in self._chains:
            entries = [e for e in chain.entries if e.animation_id not in removed]
            if not entries:
                continue
            kept.append(chain if len(entries) == len(chain.entries) else chain.model_copy(update={"entries": entries}))
        self._chains = kept

    # -- geometry ------------------------------------------------------------------

    def apply_transform_deltas(self, entries: Iterable[TransformDelta]) -> bool:
        """Re-project records after elements moved; True when any record changed."""
        deltas = build_delta_map(entries)
        if not deltas:
            return False
        updated = apply_deltas(self._animations, deltas)
        if all(new is old for new, old in zip(updated, self._animations)):
            return False
        self._animations = updated
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "animations": [a.model_dump(by_alias=True, exclude_none=True) for a in self._animations],
            "chains": [c.model_dump(by_alias=True) for c in self._chains],
        }
