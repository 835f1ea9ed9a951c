"""
Compose generation prompts from stored templates.

Each builder resolves the base template and its building blocks through the
prompt service (store first, registry fallback) and fills placeholders.
Question builders work in two stages: the type prompt is inserted first,
then the remaining variables are filled, so placeholders inside the type
prompt are substituted too.

A missing template raises TemplateNotFound; nothing is silently replaced by
empty text.
"""
from __future__ import annotations

from typing import Optional

from app.core.exceptions import TemplateNotFound
from app.services.prompt_service import PromptService
from app.services.prompt_substitution import substitute


def _variable_prompt(service: PromptService, category: str, key: str) -> str:
    """Resolve a per-value variable (area, subject, division) by its key within *category*."""
    entry = service.registry.find_by_key(category, key)
    if entry is None:
        raise TemplateNotFound(category, "*", key)
    return service.resolve(*entry.address).text


def _division_name(service: PromptService, division: str) -> str:
    entry = service.registry.find_by_key("division", division)
    return entry.name if entry else division


def build_passage_prompt(service: PromptService, *, division: str, length: str, subject: str,
                         grade: str, area: str, maintopic: str, subtopic: str, keyword: str,
                         text_type: Optional[str] = None) -> str:
    base = service.resolve("passage", "system", "system_base").text

    length_key = f"length_{length}"
    length_entry = service.registry.find("passage", "length", length_key)
    output_format = service.resolve("passage", "length", length_key).text

    text_type_prompt = "-"
    if text_type:
        text_type_prompt = service.resolve("passage", "textType", f"type_{text_type}").text

    return substitute(base, {
        "division_prompt": _variable_prompt(service, "division", division),
        "length_prompt": length_entry.name if length_entry else length,
        "subject": _variable_prompt(service, "subject", subject),
        "grade": grade,
        "area_prompt": _variable_prompt(service, "area", area),
        "maintopic": maintopic,
        "area": area,
        "subtopic": subtopic,
        "keyword": keyword,
        "text_type_prompt": text_type_prompt,
        "output_format": output_format,
    })


def build_vocabulary_prompt(service: PromptService, *, term_name: str, term_description: str,
                            passage: str, division: str, question_type: str = "multiple") -> str:
    base = service.resolve("vocabulary", "vocabularySystem", "system_base").text
    type_prompt = service.resolve("vocabulary", "vocabularyType", f"type_{question_type}").text

    staged = substitute(base, {"questionTypePrompt": type_prompt})
    return substitute(staged, {
        "termName": term_name,
        "termDescription": term_description,
        "passage": passage,
        "divisionPrompt": _variable_prompt(service, "division", division),
        "division": _division_name(service, division),
    })


def build_paragraph_prompt(service: PromptService, *, title: str, paragraph_text: str,
                           division: str, question_type: str, question_index: int = 1) -> str:
    base = service.resolve("paragraph", "paragraphSystem", "system_base").text
    type_entry = service.registry.find("paragraph", "paragraphType", f"type_{question_type}")
    specific = service.resolve("paragraph", "paragraphType", f"type_{question_type}").text

    staged = substitute(base, {"specificPrompt": specific})
    note = ""
    if question_index > 1:
        note = (f"This is question #{question_index} of this type; "
                "write it from a different angle than the earlier ones.")
    return substitute(staged, {
        "questionType": type_entry.name if type_entry else question_type,
        "questionIndexNote": note,
        "title": title,
        "division": _division_name(service, division),
        "paragraphText": paragraph_text,
        "questionIndex": question_index,
    })


def build_comprehensive_prompt(service: PromptService, *, passage: str, division: str,
                               question_type: str, question_count: int = 5) -> str:
    base = service.resolve("comprehensive", "comprehensiveSystem", "system_base").text
    type_entry = service.registry.find("comprehensive", "comprehensiveType", f"type_{question_type}")
    type_prompt = service.resolve("comprehensive", "comprehensiveType", f"type_{question_type}").text

    staged = substitute(base, {"typePrompt": type_prompt})
    return substitute(staged, {
        "questionCount": question_count,
        "questionType": type_entry.name if type_entry else question_type,
        "passage": passage,
        "divisionPrompt": _variable_prompt(service, "division", division),
    })
