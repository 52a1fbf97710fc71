"""
DubFlow — Phase Catalogue

Canonical production phases, their pipeline order, label normalisation,
board-name parsing and the phase → role-slot mapping used by routing.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from models import RegionalStatus


class Phase(str, Enum):
    """Canonical phase keys"""
    KICKOFF = "kickoff"
    ASSETS = "assets"
    TRANSLATION = "translation"
    ADAPTING = "adapting"
    BREAKDOWN = "breakdown"
    CASTING = "casting"
    SCHEDULING = "scheduling"
    RECORDING = "recording"
    PREMIX = "premix"
    QC1 = "qc1"
    RETAKES = "retakes"
    QC_RETAKES = "qcretakes"
    MIX = "mix"
    QC_MIX = "qcmix"
    MIX_RETAKES = "mixretakes"
    DELIVERIES = "deliveries"

    @property
    def label(self) -> str:
        return PHASE_LABELS[self]


PIPELINE_ORDER: List[Phase] = [
    Phase.KICKOFF,
    Phase.ASSETS,
    Phase.TRANSLATION,
    Phase.ADAPTING,
    Phase.BREAKDOWN,
    Phase.CASTING,
    Phase.SCHEDULING,
    Phase.RECORDING,
    Phase.PREMIX,
    Phase.QC1,
    Phase.RETAKES,
    Phase.QC_RETAKES,
    Phase.MIX,
    Phase.QC_MIX,
    Phase.MIX_RETAKES,
    Phase.DELIVERIES,
]

PHASE_LABELS: Dict[Phase, str] = {
    Phase.KICKOFF: "Kickoff",
    Phase.ASSETS: "Assets",
    Phase.TRANSLATION: "Translation",
    Phase.ADAPTING: "Adapting",
    Phase.BREAKDOWN: "Breakdown",
    Phase.CASTING: "Casting",
    Phase.SCHEDULING: "Scheduling",
    Phase.RECORDING: "Recording",
    Phase.PREMIX: "Premix",
    Phase.QC1: "QC 1",
    Phase.RETAKES: "Retakes",
    Phase.QC_RETAKES: "QC Retakes",
    Phase.MIX: "Mix",
    Phase.QC_MIX: "QC Mix",
    Phase.MIX_RETAKES: "Mix Retakes",
    Phase.DELIVERIES: "Deliveries",
}

# Regional and legacy board labels, already lower-cased and stripped
PHASE_SYNONYMS: Dict[str, Phase] = {
    "assetslaunch": Phase.ASSETS,
    "materiales": Phase.ASSETS,
    "traduccionad": Phase.TRANSLATION,
    "traduccinad": Phase.TRANSLATION,
    "adaptacion": Phase.ADAPTING,
    "adaptacin": Phase.ADAPTING,
    "desglose": Phase.BREAKDOWN,
    "voicetests": Phase.CASTING,
    "pruebadevoz": Phase.CASTING,
    "agenda": Phase.SCHEDULING,
    "grabacion": Phase.RECORDING,
    "grabacin": Phase.RECORDING,
    "qcpremix": Phase.QC1,
    "qc1premix": Phase.QC1,
    "qcprimary": Phase.QC1,
    "mixbogota": Phase.MIX,
    "mixmiami": Phase.MIX,
    "mezcla": Phase.MIX,
    "entregados": Phase.DELIVERIES,
    "delivery": Phase.DELIVERIES,
}

BOARD_NAME_SEPARATOR = "-"

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize(label: str) -> str:
    """Lower-case, strip non-alphanumerics and resolve synonyms.

    Unrecognised labels come back in their stripped form, so the result is
    either a canonical key or an unknown key that maps to itself.
    """
    stripped = _NON_ALNUM.sub("", (label or "").lower())
    synonym = PHASE_SYNONYMS.get(stripped)
    if synonym is not None:
        return synonym.value
    return stripped


def parse_phase(label: Union[str, Phase, None]) -> Optional[Phase]:
    if isinstance(label, Phase):
        return label
    if label is None:
        return None
    try:
        return Phase(normalize(label))
    except ValueError:
        return None


def next_phase(current: Union[str, Phase, None], voice_test_required: Optional[bool] = None) -> Optional[Phase]:
    """Phase that follows `current`, or None when terminal or unknown.

    Breakdown jumps straight to recording unless a voice test was explicitly
    requested, skipping casting and scheduling.
    """
    phase = parse_phase(current)
    if phase is None:
        return None
    index = PIPELINE_ORDER.index(phase)
    if index >= len(PIPELINE_ORDER) - 1:
        return None
    if phase is Phase.BREAKDOWN and voice_test_required is not True:
        return Phase.RECORDING
    return PIPELINE_ORDER[index + 1]


def parse_board_name(name: str) -> Tuple[str, str]:
    """Split 'MIA-QC Mix' into ('MIA', 'QC Mix').

    A name without a separator is its own prefix and its own suffix.
    """
    prefix, sep, suffix = name.partition(BOARD_NAME_SEPARATOR)
    if not sep:
        return name, name
    return prefix, suffix


def board_phase(name: str) -> str:
    """Normalised phase key encoded in a board name."""
    return normalize(parse_board_name(name)[1])


# ============================================================
# ROLE SLOTS & PIPELINE VARIANTS
# ============================================================

class RoleSlot(str, Enum):
    """Task columns holding the collaborator responsible for a phase"""
    TRANSLATOR = "translator_id"
    ADAPTER = "adapter_id"
    QC_PREMIX = "qc_1_id"
    QC_RETAKES = "qc_retakes_id"
    QC_MIX = "qc_mix_id"
    MIXER_BOGOTA = "mixer_bogota_id"
    MIXER_MIAMI = "mixer_miami_id"


COLOMBIA_PREFIXES = ("col", "bog")


@dataclass(frozen=True)
class PipelineVariant:
    """Regional behaviour of a pipeline, resolved once per operation"""
    is_colombia: bool
    mixer_slot: RoleSlot

    @staticmethod
    def resolve(workspace_name: str, prefix: str) -> "PipelineVariant":
        is_colombia = (
            "colombia" in (workspace_name or "").lower()
            or (prefix or "").strip().lower() in COLOMBIA_PREFIXES
        )
        return PipelineVariant(
            is_colombia=is_colombia,
            mixer_slot=RoleSlot.MIXER_BOGOTA if is_colombia else RoleSlot.MIXER_MIAMI,
        )


_FIXED_ROLE_SLOTS: Dict[Phase, RoleSlot] = {
    Phase.TRANSLATION: RoleSlot.TRANSLATOR,
    Phase.ADAPTING: RoleSlot.ADAPTER,
    Phase.QC1: RoleSlot.QC_PREMIX,
    Phase.RETAKES: RoleSlot.QC_RETAKES,
    Phase.QC_MIX: RoleSlot.QC_MIX,
}

# Phases where a Colombia task is parked until its collaborator confirms
COLOMBIA_ON_HOLD_PHASES = frozenset({Phase.ADAPTING, Phase.MIX})


def role_slot_for(phase: Phase, variant: PipelineVariant) -> Optional[RoleSlot]:
    if phase is Phase.MIX:
        return variant.mixer_slot
    return _FIXED_ROLE_SLOTS.get(phase)


def arrival_overrides(phase: Phase, variant: PipelineVariant) -> Dict[str, object]:
    """Extra task fields forced when a task lands on `phase`."""
    if variant.is_colombia and phase in COLOMBIA_ON_HOLD_PHASES:
        return {"regional_status": RegionalStatus.ON_HOLD}
    return {}


def catalogue() -> List[Dict[str, object]]:
    return [
        {"key": phase.value, "label": phase.label, "position": index}
        for index, phase in enumerate(PIPELINE_ORDER)
    ]
