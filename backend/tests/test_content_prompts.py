"""
Tests for generation prompt composition over the bundled defaults.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from app.core.exceptions import TemplateNotFound
from app.services.content_prompts import (
    build_comprehensive_prompt,
    build_paragraph_prompt,
    build_passage_prompt,
    build_vocabulary_prompt,
)
from app.services.prompt_service import PromptService
from app.services.prompt_store import InMemoryPromptStore
from app.services.prompt_substitution import find_placeholders


@pytest.fixture
def service():
    return PromptService(InMemoryPromptStore())


PASSAGE_ARGS = dict(
    division="middle",
    length="10_5",
    subject="science",
    grade="Grade 8",
    area="physics",
    maintopic="Energy",
    subtopic="Energy conversion",
    keyword="kinetic energy, potential energy",
)


class TestPassagePrompt:

    def test_all_placeholders_filled(self, service):
        prompt = build_passage_prompt(service, **PASSAGE_ARGS)
        assert find_placeholders(prompt) == []
        assert "Energy conversion" in prompt
        assert "Physics: force and motion" in prompt
        assert "Middle school (grades 7-9)" in prompt
        assert "5 paragraphs of up to 10 sentences" in prompt
        assert '"passages"' in prompt

    def test_text_type_included(self, service):
        prompt = build_passage_prompt(service, text_type="interview", **PASSAGE_ARGS)
        assert "Interview text" in prompt

    def test_stored_edit_is_used(self, service):
        service.initialize_templates()
        service.update_template("area-physics", "EDITED PHYSICS", "alice")
        prompt = build_passage_prompt(service, **PASSAGE_ARGS)
        assert "EDITED PHYSICS" in prompt

    def test_unknown_area_raises(self, service):
        args = dict(PASSAGE_ARGS, area="astrology")
        with pytest.raises(TemplateNotFound):
            build_passage_prompt(service, **args)

    def test_unknown_length_raises(self, service):
        args = dict(PASSAGE_ARGS, length="99")
        with pytest.raises(TemplateNotFound):
            build_passage_prompt(service, **args)


class TestQuestionPrompts:

    def test_vocabulary_two_stage(self, service):
        prompt = build_vocabulary_prompt(
            service, term_name="friction", term_description="a force that resists motion",
            passage="Friction slows things down.", division="elem_high",
        )
        assert "**Term**: friction" in prompt
        assert '"vocabularyQuestions"' in prompt
        assert "Upper elementary (grades 5-6)" in prompt
        assert find_placeholders(prompt) == []

    def test_type_prompt_placeholders_filled_in_second_stage(self, service):
        service.initialize_templates()
        service.update_template("vocabulary-type-short", "Short answer about {termName}", "alice")
        prompt = build_vocabulary_prompt(
            service, term_name="friction", term_description="d", passage="p",
            division="middle", question_type="short",
        )
        assert "Short answer about friction" in prompt

    def test_paragraph(self, service):
        prompt = build_paragraph_prompt(
            service, title="Why do rivers bend?", paragraph_text="Rivers erode banks.",
            division="middle", question_type="blank", question_index=2,
        )
        assert "Fill in the blank question #2" in prompt
        assert "question #2 of this type" in prompt
        assert find_placeholders(prompt) == []

    def test_comprehensive(self, service):
        prompt = build_comprehensive_prompt(
            service, passage="Some passage.", division="elem_mid",
            question_type="summary", question_count=3,
        )
        assert "write 3 questions" in prompt
        assert "Key content summary" in prompt
        assert find_placeholders(prompt) == []

    def test_unknown_question_type(self, service):
        with pytest.raises(TemplateNotFound):
            build_comprehensive_prompt(service, passage="p", division="middle", question_type="essay")
