from __future__ import annotations

import pytest

from resumeboost.models import CandidateItem, ItemAnalysis, ProjectAnalysis
from resumeboost.reconciler import (
    build_analysis_index,
    normalize_title,
    reconcile,
    select_from_analysis,
)
from tests.helpers import item


def _verdicts(**suitable: bool) -> list[ItemAnalysis]:
    return [ItemAnalysis(title=t, suitable=s) for t, s in suitable.items()]


def test_full_reconcile_scenario():
    originals = [item("A"), item("B"), item("C")]
    result = reconcile(
        originals,
        _verdicts(A=True, B=False, C=False),
        replacements=[item("B2")],
        additions=[item("D")],
        cap=3,
    )
    assert [i.title for i in result.final_items] == ["A", "B2", "D"]
    assert result.kept_count == 1
    assert result.removed_count == 2
    assert result.added_count == 2
    assert result.dropped_count == 0


def test_cap_already_met_is_a_noop():
    originals = [item("A"), item("B"), item("C")]
    result = reconcile(
        originals,
        _verdicts(A=True, B=True, C=True),
        additions=[item("D"), item("E")],
        cap=3,
    )
    assert result.final_items == tuple(originals)
    assert result.added_count == 0
    assert result.dropped_count == 2
    assert result.cap_blocked


@pytest.mark.parametrize("n_replacements,n_additions", [(0, 0), (1, 5), (4, 4), (10, 0)])
def test_final_never_exceeds_cap(n_replacements, n_additions):
    originals = [item("A"), item("B")]
    result = reconcile(
        originals,
        _verdicts(A=True, B=True),
        replacements=[item(f"R{i}") for i in range(n_replacements)],
        additions=[item(f"N{i}") for i in range(n_additions)],
        cap=3,
    )
    assert len(result.final_items) <= 3


def test_kept_items_keep_original_order():
    originals = [item("Z"), item("X"), item("Y"), item("W")]
    result = reconcile(originals, _verdicts(Z=True, X=False, Y=True, W=True), cap=5)
    assert [i.title for i in result.final_items] == ["Z", "Y", "W"]


def test_replacements_fill_slots_before_additions():
    originals = [item("A"), item("B")]
    result = reconcile(
        originals,
        _verdicts(A=True, B=True),
        replacements=[item("R1")],
        additions=[item("N1")],
        cap=3,
    )
    assert [i.title for i in result.final_items] == ["A", "B", "R1"]
    assert result.dropped_count == 1


def test_reconcile_is_idempotent_and_pure():
    originals = [item("A", "x"), item("B", "y")]
    analysis = _verdicts(A=True, B=False)
    replacements = [item("B2", "z")]
    snapshot = (list(originals), list(analysis), list(replacements))

    first = reconcile(originals, analysis, replacements, cap=3)
    second = reconcile(originals, analysis, replacements, cap=3)

    assert first == second
    assert (originals, analysis, replacements) == snapshot


def test_empty_originals_take_incoming_up_to_cap():
    result = reconcile(
        [],
        {},
        replacements=[item("R1")],
        additions=[item("N1"), item("N2"), item("N3")],
        cap=3,
    )
    assert [i.title for i in result.final_items] == ["R1", "N1", "N2"]
    assert result.removed_count == 0


def test_no_selection_returns_kept_items():
    originals = [item("A"), item("B")]
    result = reconcile(originals, _verdicts(A=True, B=False))
    assert [i.title for i in result.final_items] == ["A"]
    assert result.added_count == 0


def test_items_without_analysis_are_excluded():
    originals = [item("A"), item("Unscored")]
    result = reconcile(originals, _verdicts(A=True))
    assert [i.title for i in result.final_items] == ["A"]
    assert result.unanalyzed_titles == ("Unscored",)


def test_titles_match_after_trimming_but_not_case():
    originals = [item("  Chat App "), item("todo list")]
    result = reconcile(originals, _verdicts(**{"Chat App": True, "Todo List": True}))
    assert [i.title for i in result.final_items] == ["  Chat App "]
    assert normalize_title("  Chat App ") == "Chat App"


def test_mapping_analysis_keys_are_normalized():
    verdicts = {"A ": ItemAnalysis("A ", True), " B": ItemAnalysis("B", False)}
    result = reconcile([item("A"), item("B")], verdicts)
    assert [i.title for i in result.final_items] == ["A"]
    assert result.removed_count == 1
    assert result.unanalyzed_titles == ()


def test_duplicate_original_titles_rejected():
    with pytest.raises(ValueError):
        reconcile([item("A"), item(" A")], _verdicts(A=True))


def test_build_analysis_index_keeps_first_duplicate():
    index = build_analysis_index(
        [ItemAnalysis(title="A", suitable=True), ItemAnalysis(title="A ", suitable=False)]
    )
    assert index["A"].suitable is True


def test_select_from_analysis_follows_selection_order():
    b2 = CandidateItem(title="B2", bullets=("b",))
    c2 = CandidateItem(title="C2", bullets=("c",))
    analysis = ProjectAnalysis(
        items=(
            ItemAnalysis(title="A", suitable=True),
            ItemAnalysis(title="B", suitable=False, replacement=b2),
            ItemAnalysis(title="C", suitable=False, replacement=c2),
        ),
        suggestions=(item("D"), item("E")),
    )
    replacements, additions = select_from_analysis(
        analysis, replace_titles=["C", "A", "B", "C"], add_titles=["E", "missing", "D"]
    )
    assert replacements == [c2, b2]
    assert [a.title for a in additions] == ["E", "D"]
