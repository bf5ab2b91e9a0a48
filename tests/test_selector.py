from __future__ import annotations

from navigator.catalog.loader import ResourceRecord
from navigator.models import Disposition, RequestContext, Urgency
from navigator.retriever.selector import CandidateSelector, EmptyResultPolicy, SelectionPolicy

from test_text_scoring import CODING, GIRLS, GRIEF, HOTLINE

NO_MATCH = EmptyResultPolicy.NO_MATCH


def _ctx(message, *, tags=(), urgency=Urgency.LOW, clarify=False, question=""):
    return RequestContext(
        message=message, need_tags=tuple(tags), urgency=urgency,
        needs_clarification=clarify, clarifying_question=question,
    )


def _music(i: int) -> ResourceRecord:
    return ResourceRecord(id=f"r{i}", title=f"Program {i}", url=f"https://example.org/{i}",
                          description="music lessons for teens")


def test_grief_request_ranks_grief_record_first():
    sel = CandidateSelector().select([CODING, GRIEF], _ctx("I need a support group for grief"), empty_policy=NO_MATCH)
    assert sel.disposition == Disposition.RECOMMEND
    assert [c.record.id for c in sel.candidates] == ["g1"]
    assert sel.candidates[0].score > 0


def test_never_more_than_three_results():
    catalog = [_music(i) for i in range(8)]
    sel = CandidateSelector().select(catalog, _ctx("music"), empty_policy=NO_MATCH)
    assert sel.ranked_count == 8
    assert len(sel.candidates) == 3


def test_ties_keep_catalog_order_and_runs_are_identical():
    catalog = [_music(i) for i in range(5)]
    selector = CandidateSelector()
    first = selector.select(catalog, _ctx("music"), empty_policy=NO_MATCH)
    second = selector.select(catalog, _ctx("music"), empty_policy=NO_MATCH)
    assert [c.record.id for c in first.candidates] == ["r0", "r1", "r2"]
    assert first == second


def test_high_urgency_keeps_crisis_resources():
    sel = CandidateSelector().select(
        [GRIEF, HOTLINE], _ctx("I need to talk about grief", urgency=Urgency.HIGH), empty_policy=NO_MATCH
    )
    assert "h1" in [c.record.id for c in sel.candidates]


def test_lower_urgency_hides_crisis_resources_when_others_exist():
    sel = CandidateSelector().select(
        [GRIEF, HOTLINE], _ctx("I need to talk about grief", urgency=Urgency.MEDIUM), empty_policy=NO_MATCH
    )
    assert [c.record.id for c in sel.candidates] == ["g1"]


def test_crisis_filter_never_empties_the_list():
    sel = CandidateSelector().select(
        [CODING, HOTLINE], _ctx("I want to talk to someone"), empty_policy=NO_MATCH
    )
    assert sel.disposition == Disposition.RECOMMEND
    assert [c.record.id for c in sel.candidates] == ["h1"]


def test_clarify_needs_weak_close_and_classifier_flag():
    catalog = [_music(1), _music(2)]
    selector = CandidateSelector()

    flagged = selector.select(catalog, _ctx("music", clarify=True, question="Lessons or listening?"),
                              empty_policy=NO_MATCH)
    assert flagged.disposition == Disposition.CLARIFY
    assert flagged.candidates == ()
    assert flagged.clarifying_question == "Lessons or listening?"

    unflagged = selector.select(catalog, _ctx("music"), empty_policy=NO_MATCH)
    assert unflagged.disposition == Disposition.RECOMMEND


def test_strong_top_score_is_not_ambiguous():
    sel = CandidateSelector().select(
        [GRIEF, _music(1)], _ctx("grief support group music", clarify=True), empty_policy=NO_MATCH
    )
    assert sel.disposition == Disposition.RECOMMEND


def test_single_weak_candidate_is_not_close():
    sel = CandidateSelector().select([_music(1)], _ctx("music", clarify=True), empty_policy=NO_MATCH)
    assert sel.disposition == Disposition.RECOMMEND


def test_empty_result_policy_no_match():
    sel = CandidateSelector().select([CODING, GIRLS], _ctx("grief"), empty_policy=NO_MATCH)
    assert sel.disposition == Disposition.NO_MATCH
    assert sel.candidates == ()
    assert not sel.fallback


def test_empty_result_policy_fallback_first_n():
    catalog = [CODING, GIRLS, HOTLINE, _music(1)]
    sel = CandidateSelector().select(catalog, _ctx("astronomy"), empty_policy=EmptyResultPolicy.FALLBACK_FIRST_N)
    assert sel.disposition == Disposition.NO_MATCH
    assert sel.fallback
    assert [c.record.id for c in sel.candidates] == ["c1", "w1", "h1"]


def test_thresholds_are_configurable():
    policy = SelectionPolicy(max_results=1, weak_threshold=100, close_gap=100)
    sel = CandidateSelector(policy=policy).select(
        [GRIEF, _music(1)], _ctx("grief support group music", clarify=True), empty_policy=NO_MATCH
    )
    assert sel.disposition == Disposition.CLARIFY


def test_empty_policy_parse():
    assert EmptyResultPolicy.parse("FALLBACK") == EmptyResultPolicy.FALLBACK_FIRST_N
    assert EmptyResultPolicy.parse("no_match") == EmptyResultPolicy.NO_MATCH
    assert EmptyResultPolicy.parse("") == EmptyResultPolicy.NO_MATCH
