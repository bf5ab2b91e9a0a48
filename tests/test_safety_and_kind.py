# Safety gate patterns + message-kind routing. Pure regex, no network.

import pytest

from navigator.router.safety_router import SafetyGate, triggered_safety
from navigator.tools.message_kind import MessageKind, MessageKindDetector


@pytest.mark.parametrize("text", [
    "I want to kill myself",
    "i want to kms",
    "sometimes I think about suicide",
    "I've been cutting again",
    "I feel unsafe at home",
    "I’m not safe right now",
    "my stepdad abused me",
    "I might overdose tonight",
    "I'm going to hang tonight",
    "thinking about hanging myself",
])
def test_crisis_language_triggers(text):
    assert triggered_safety(text)


@pytest.mark.parametrize("text", [
    "I need a support group for grief",
    "can we hang out and talk",
    "hang in there, exams end friday",
    "hang on, let me ask my mom",
    "my dad left when I was six",
    "",
])
def test_ordinary_messages_do_not_trigger(text):
    assert not triggered_safety(text)


def test_gate_reports_matching_pattern():
    res = SafetyGate().check("I want to end it all")
    assert res.triggered
    assert "end it all" in res.pattern


def test_patterns_are_configuration():
    gate = SafetyGate(patterns=[r"\bcode red\b"])
    assert gate.triggered("this is a code red")
    assert not gate.triggered("I want to kill myself")


@pytest.mark.parametrize("text,kind", [
    ("hi", MessageKind.GREETING),
    ("hey there!", MessageKind.GREETING),
    ("Good morning", MessageKind.GREETING),
    ("help me with my math homework", MessageKind.OUT_OF_SCOPE),
    ("what's the weather tomorrow", MessageKind.OUT_OF_SCOPE),
    ("can you recommend a program for teens?", MessageKind.RESOURCE_REQUEST),
    ("hi, where can I find a mentor?", MessageKind.RESOURCE_REQUEST),
    ("I've been feeling down lately", MessageKind.AMBIGUOUS),
    ("", MessageKind.AMBIGUOUS),
])
def test_message_kind(text, kind):
    assert MessageKindDetector().classify(text) == kind


def test_resource_keywords_are_configurable():
    d = MessageKindDetector(request_keywords=["mentor"])
    assert d.is_asking_for_resources("is there a mentor near me")
    assert not d.is_asking_for_resources("can you recommend something")
