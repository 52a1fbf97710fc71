"""Tests for the phase catalogue: ordering, normalisation and role slots."""
import pytest

from models import RegionalStatus
from phase_catalog import (
    PIPELINE_ORDER, Phase, PipelineVariant, RoleSlot,
    arrival_overrides, board_phase, catalogue, next_phase, normalize,
    parse_board_name, parse_phase, role_slot_for,
)

MIAMI = PipelineVariant.resolve("Miami", "MIA")
COLOMBIA = PipelineVariant.resolve("Colombia", "COL")


# ============================================================
# NEXT PHASE
# ============================================================

def test_next_phase_follows_pipeline_order():
    assert next_phase(Phase.KICKOFF) is Phase.ASSETS
    assert next_phase(Phase.RECORDING) is Phase.PREMIX
    assert next_phase(Phase.QC_MIX) is Phase.MIX_RETAKES


def test_next_phase_is_none_at_the_end():
    assert next_phase(Phase.DELIVERIES) is None


def test_next_phase_is_none_for_unknown_label():
    assert next_phase("Budget Review") is None
    assert next_phase(None) is None


@pytest.mark.parametrize("flag", [None, False])
def test_breakdown_skips_casting_without_voice_test(flag):
    assert next_phase(Phase.BREAKDOWN, flag) is Phase.RECORDING


def test_breakdown_goes_to_casting_when_voice_test_required():
    assert next_phase(Phase.BREAKDOWN, True) is Phase.CASTING


def test_next_phase_is_always_later_in_order():
    for phase in PIPELINE_ORDER[:-1]:
        for flag in (None, True, False):
            target = next_phase(phase, flag)
            assert PIPELINE_ORDER.index(target) > PIPELINE_ORDER.index(phase)


def test_next_phase_accepts_board_labels():
    assert next_phase("QC 1") is Phase.RETAKES
    assert next_phase("QC Premix") is Phase.RETAKES


# ============================================================
# NORMALISATION
# ============================================================

def test_normalize_strips_case_and_punctuation():
    assert normalize("QC Mix") == "qcmix"
    assert normalize("  Mix-Retakes ") == "mixretakes"


def test_normalize_resolves_synonyms():
    assert normalize("QC Premix") == Phase.QC1.value
    assert normalize("Voice Tests") == Phase.CASTING.value
    assert normalize("Entregados") == Phase.DELIVERIES.value


def test_normalize_is_idempotent():
    for label in ["QC Premix", "Voice Tests", "Mix Retakes", "Unknown Thing", "Kick-off!"]:
        once = normalize(label)
        assert normalize(once) == once


def test_unknown_label_maps_to_itself():
    assert normalize("Budget Review") == "budgetreview"
    assert parse_phase("Budget Review") is None


def test_parse_phase_returns_enum_members():
    assert parse_phase("qcretakes") is Phase.QC_RETAKES
    assert parse_phase(Phase.MIX) is Phase.MIX
    assert parse_phase(None) is None


# ============================================================
# BOARD NAMES
# ============================================================

def test_parse_board_name_splits_on_first_separator():
    assert parse_board_name("MIA-QC Mix") == ("MIA", "QC Mix")
    assert parse_board_name("COL-Mix-Retakes") == ("COL", "Mix-Retakes")


def test_board_name_without_separator_is_prefix_and_suffix():
    assert parse_board_name("Deliveries") == ("Deliveries", "Deliveries")


def test_board_phase_normalises_suffix():
    assert board_phase("MIA-QC Premix") == "qc1"
    assert board_phase("COL-Mix-Retakes") == "mixretakes"


# ============================================================
# ROLE SLOTS & VARIANTS
# ============================================================

def test_variant_detects_colombia_by_workspace_or_prefix():
    assert COLOMBIA.is_colombia
    assert PipelineVariant.resolve("LatAm", "bog").is_colombia
    assert not MIAMI.is_colombia


def test_mix_slot_depends_on_variant():
    assert role_slot_for(Phase.MIX, MIAMI) is RoleSlot.MIXER_MIAMI
    assert role_slot_for(Phase.MIX, COLOMBIA) is RoleSlot.MIXER_BOGOTA


def test_fixed_role_slots():
    assert role_slot_for(Phase.TRANSLATION, MIAMI) is RoleSlot.TRANSLATOR
    assert role_slot_for(Phase.ADAPTING, MIAMI) is RoleSlot.ADAPTER
    assert role_slot_for(Phase.QC1, MIAMI) is RoleSlot.QC_PREMIX
    assert role_slot_for(Phase.RETAKES, MIAMI) is RoleSlot.QC_RETAKES
    assert role_slot_for(Phase.QC_MIX, MIAMI) is RoleSlot.QC_MIX


def test_phases_without_slot():
    assert role_slot_for(Phase.KICKOFF, MIAMI) is None
    assert role_slot_for(Phase.DELIVERIES, COLOMBIA) is None


def test_arrival_overrides_only_for_colombia():
    assert arrival_overrides(Phase.ADAPTING, COLOMBIA) == {"regional_status": RegionalStatus.ON_HOLD}
    assert arrival_overrides(Phase.MIX, COLOMBIA) == {"regional_status": RegionalStatus.ON_HOLD}
    assert arrival_overrides(Phase.ADAPTING, MIAMI) == {}
    assert arrival_overrides(Phase.RECORDING, COLOMBIA) == {}


def test_catalogue_lists_every_phase_in_order():
    entries = catalogue()
    assert [e["key"] for e in entries] == [p.value for p in PIPELINE_ORDER]
    assert entries[9] == {"key": "qc1", "label": "QC 1", "position": 9}
