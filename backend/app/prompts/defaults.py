"""
Bundled default prompt templates.

The database is the source of truth for prompt text; this catalogue is the
fallback when the store cannot answer and the baseline that reset and forced
re-initialisation restore. Entries are addressed by (category, sub_category,
key) and identified by a stable prompt_id.

Order matters: the admin console lists prompts in registry order when the
store is empty.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class DefaultPrompt:
    prompt_id: str
    category: str
    sub_category: str
    key: str
    name: str
    prompt_text: str
    description: str = ""
    is_active: bool = True
    is_default: bool = False
    version: int = 1

    @property
    def address(self) -> tuple[str, str, str]:
        return (self.category, self.sub_category, self.key)


class DefaultPromptRegistry:
    """Immutable lookup over a list of DefaultPrompt entries."""

    def __init__(self, entries: Iterable[DefaultPrompt]):
        self._entries: tuple[DefaultPrompt, ...] = tuple(entries)
        self._by_id: dict[str, DefaultPrompt] = {}
        self._by_address: dict[tuple[str, str, str], DefaultPrompt] = {}

        for entry in self._entries:
            if entry.prompt_id in self._by_id:
                raise ValueError(f"Duplicate default prompt_id: {entry.prompt_id}")
            self._by_id[entry.prompt_id] = entry
            if not entry.is_active:
                continue
            if entry.address in self._by_address:
                raise ValueError(
                    "Duplicate default template address %s/%s/%s" % entry.address
                )
            self._by_address[entry.address] = entry

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, prompt_id: str) -> Optional[DefaultPrompt]:
        return self._by_id.get(prompt_id)

    def find(self, category: str, sub_category: str, key: str) -> Optional[DefaultPrompt]:
        """Active entry at the given address, or None."""
        return self._by_address.get((category, sub_category, key))

    def find_by_key(self, category: str, key: str) -> Optional[DefaultPrompt]:
        """First active entry in *category* with *key*, for per-value subcategories (area, subject, division)."""
        for entry in self._entries:
            if entry.is_active and entry.category == category and entry.key == key:
                return entry
        return None

    def by_category(self, category: str) -> list[DefaultPrompt]:
        return [e for e in self._entries if e.category == category]


# ---------------------------------------------------------------------------
# Passage generation
# ---------------------------------------------------------------------------

PASSAGE_SYSTEM_BASE = """###Instructions
Using the inputs below, write one learning passage. The output has a single section:
- passage: the passage written to the input conditions

Every passage uses a question-style, curiosity-raising title, explains abstract ideas through everyday examples, and never relies on random content.

###Procedure
1. Derive keywords
- Parse the stage, subject, grade, area and passage length to derive (1) core concepts from basic to advanced, (2) everyday examples, (3) vocabulary suited to the grade.
2. Write the passage
- Combine the derived guidance into one title and a body.
- The body follows the length guideline and the output format exactly.
- Glossary requirement: every study term that appears in the passage goes into the footnote. Explain at least 20 terms.
- Glossary format: "term: explanation (example: example sentence)".
3. Make it engaging
- Open with a real-life situation or question.
- Mix explanation with comparison, prediction and cause-and-effect.
4. Output
- Output JSON only, following the output format below.
- Write "-" for any key whose data cannot be found.

###Stage
{division_prompt}

###Passage length
{length_prompt}

###Subject
{subject}

###Grade
{grade}

###Area
{area_prompt}

###Main topic
{maintopic}
Build the passage around the main topic and connect it to the {area} area.

###Subtopic
{subtopic}
Cover the subtopic concretely and make its link to the main topic explicit.

###Key concepts
{keyword}
Work these concepts into the passage naturally and explain them at grade level. Include them in the footnote glossary.

###Text type (optional)
{text_type_prompt}

###Output format (JSON)
{output_format}"""


def _length_format(sentences: str, paragraphs: int) -> str:
    body = ",\n".join(
        f'        "<paragraph {i} of {sentences} sentences>"' for i in range(1, paragraphs + 1)
    )
    return (
        "{\n"
        '  "passages": [\n'
        "    {\n"
        '      "title": "<question-style, curiosity-raising title>",\n'
        '      "paragraphs": [\n'
        f"{body}\n"
        "      ],\n"
        '      "footnote": [\n'
        '        "term 1: short, clear explanation (example: natural sentence using term 1)",\n'
        '        "term 2: short, clear explanation (example: natural sentence using term 2)"\n'
        "      ]\n"
        "    }\n"
        "  ]\n"
        "}"
    )


_LENGTHS = [
    ("passage-length-1-2-10", "length_1_2_10", "1-2", 10, "10 paragraphs of 1-2 sentences", "Upper elementary length format"),
    ("passage-length-1-2-12", "length_1_2_12", "1-2", 12, "12 paragraphs of 1-2 sentences", "Middle school length format"),
    ("passage-length-10-5", "length_10_5", "up to 10", 5, "5 paragraphs of up to 10 sentences", "Middle school length format"),
    ("passage-length-4-5-5-6", "length_4_5_5_6", "4-5", 6, "5-6 paragraphs of 4-5 sentences", "Upper elementary length format"),
    ("passage-length-5-6-6", "length_5_6_6", "5-6", 6, "6 paragraphs of 5-6 sentences", "Middle school length format"),
]

_TEXT_TYPES = [
    ("essay", "Argumentative essay",
     "Argumentative essay: develops an opinion on a topic logically. Structure it as problem, evidence, rebuttal and conclusion, "
     "using persuasive evidence and examples. Encourage reasoning suited to the grade."),
    ("inquiry", "Inquiry text",
     "Inquiry text: follows the process of investigating a question. Structure it as discovering a problem, forming a hypothesis, "
     "investigating and drawing a result. Open with a question that sparks curiosity."),
    ("case", "Case-based text",
     "Case-based text: explains a concept through a concrete case. Structure it as case, analysis, concept and application, "
     "using examples close to everyday life."),
    ("interview", "Interview text",
     "Interview text: delivers information through a conversation with an expert. Alternate interviewer questions and answers "
     "and keep the dialogue natural."),
    ("compare", "Compare and contrast text",
     "Compare and contrast text: explains two or more subjects by their similarities and differences. State the basis of comparison clearly."),
    ("experiment", "Experiment or survey report",
     "Experiment or survey report: records the purpose, method, process, result and conclusion of an experiment objectively. "
     "Explain data and observations at grade level."),
]


# ---------------------------------------------------------------------------
# Vocabulary questions
# ---------------------------------------------------------------------------

VOCABULARY_SYSTEM_BASE = """###Instructions
Write one vocabulary question about the given term.
- Assess whether the student understands the definition, meaning and usage of the term.
- Use the passage context to ask about the term's specific meaning.

###Target term
**Term**: {termName}
**Description**: {termDescription}

###Passage context
{passage}

###Stage (difficulty)
{divisionPrompt}

###Question type
{questionTypePrompt}

###Notes
- Follow the JSON format exactly.
- Use vocabulary suited to the grade.
- Ground the answer and explanation in the precise meaning of the term.
- Make wrong options plausible."""

VOCABULARY_TYPE_MULTIPLE = """Write the vocabulary question in this JSON format:
{
  "vocabularyQuestions": [
    {
      "term": "term",
      "question": "Which of the following best matches the meaning of [term]?",
      "options": ["1. option", "2. option", "3. option", "4. option", "5. option"],
      "answer": "3",
      "explanation": "why the answer is correct and the concept behind it"
    }
  ]
}"""

VOCABULARY_TYPE_SHORT = """Write the vocabulary question as a short-answer item with an initial-letter hint:
{
  "vocabularyQuestions": [
    {
      "term": "term",
      "question": "Which word from the passage means: <definition>?",
      "answer": "term",
      "answerInitials": "first letters of the answer",
      "explanation": "why the answer is correct"
    }
  ]
}"""


# ---------------------------------------------------------------------------
# Paragraph questions
# ---------------------------------------------------------------------------

PARAGRAPH_SYSTEM_BASE = """###Instructions
Write a {questionType} question about the paragraph below.
{questionIndexNote}

**Passage title**: {title}
**Target stage**: {division}
**Paragraph**: {paragraphText}
**Question number**: {questionType} question #{questionIndex}

###Type requirements
{specificPrompt}

###Notes
- Use vocabulary and difficulty suited to {division}.
- Keep the question clear and specific.
- Make the right answer clearly distinguishable from the wrong ones.
- Write the explanation so the student can follow it.
- Respond in JSON only."""

_PARAGRAPH_TYPES = [
    ("order", "Word order",
     "Word order: shuffle the words of a key sentence from the paragraph and ask for the correct order.\n\n"
     'Output format:\n{\n  "type": "Word order",\n  "question": "Arrange the words to complete the sentence.",\n'
     '  "wordSegments": ["word 1", "word 2", "word 3"],\n  "answer": "the sentence in correct order",\n'
     '  "explanation": "why this order is correct"\n}'),
    ("blank", "Fill in the blank",
     "Fill in the blank: blank out a key word in a central sentence and ask for the word that fits the context.\n\n"
     'Output format:\n{\n  "type": "Fill in the blank",\n  "question": "Which word best fills the blank?",\n'
     '  "options": ["1. option", "2. option", "3. option", "4. option", "5. option"],\n'
     '  "answer": "answer number",\n  "explanation": "why the answer fits the context"\n}'),
    ("synonym", "Synonym",
     "Synonym: ask for the word closest in meaning to a word used in the paragraph.\n\n"
     'Output format:\n{\n  "type": "Synonym",\n  "question": "Which word is closest in meaning to \'[word]\'?",\n'
     '  "options": ["1. option", "2. option", "3. option", "4. option", "5. option"],\n'
     '  "answer": "answer number",\n  "explanation": "the synonym relationship"\n}'),
    ("antonym", "Antonym",
     "Antonym: ask for the word opposite in meaning to a word used in the paragraph.\n\n"
     'Output format:\n{\n  "type": "Antonym",\n  "question": "Which word is opposite in meaning to \'[word]\'?",\n'
     '  "options": ["1. option", "2. option", "3. option", "4. option", "5. option"],\n'
     '  "answer": "answer number",\n  "explanation": "the antonym relationship"\n}'),
    ("ox", "True or false",
     "True or false: state one fact from the paragraph, correctly or altered, and ask whether it is true.\n\n"
     'Output format:\n{\n  "type": "True or false",\n  "question": "statement",\n  "options": ["O", "X"],\n'
     '  "answer": "O or X",\n  "explanation": "where the paragraph supports the answer"\n}'),
]


# ---------------------------------------------------------------------------
# Comprehensive questions
# ---------------------------------------------------------------------------

COMPREHENSIVE_SYSTEM_BASE = """###Instructions
Using the passage, write {questionCount} questions of the **{questionType}** type.
- Assess overall understanding and grasp of the key content.
- Each question covers a different point or perspective.
- Use only what the passage states or what can be inferred from it.

###Passage
{passage}

###Stage (difficulty)
{divisionPrompt}

###Type guideline
{typePrompt}

###Notes
- Follow the JSON format exactly.
- Ground answers and explanations clearly in the passage.
- Make wrong options plausible."""

_COMPREHENSIVE_TYPES = [
    ("short", "Short answer",
     "Short answer: ask for a one-to-three word answer or a single sentence about key content.\n\n"
     'Output format:\n{\n  "type": "Short answer",\n  "question": "question",\n  "answer": "answer",\n'
     '  "answerInitials": "first letters of the answer",\n  "explanation": "where the passage supports the answer"\n}'),
    ("sequence", "Paragraph order",
     "Paragraph order: ask for the order in which events, steps or arguments unfold.\n\n"
     'Output format:\n{\n  "type": "Paragraph order",\n  "question": "Which order is correct?",\n'
     '  "items": ["item 1", "item 2", "item 3", "item 4"],\n'
     '  "options": ["1. (1)-(2)-(3)-(4)", "2. (2)-(1)-(4)-(3)", "3. (3)-(1)-(2)-(4)", "4. (1)-(3)-(2)-(4)"],\n'
     '  "answer": "answer number",\n  "explanation": "why this order is correct"\n}'),
    ("summary", "Key content summary",
     "Key content summary: ask for the option that best summarizes the passage.\n\n"
     'Output format:\n{\n  "type": "Key content summary",\n  "question": "Which best states the key content of the passage?",\n'
     '  "options": ["1. summary", "2. summary", "3. summary", "4. summary"],\n'
     '  "answer": "answer number",\n  "explanation": "how the key content was identified"\n}'),
    ("keyword", "Key word or sentence",
     "Key word or sentence: ask for the word or sentence carrying the main idea of the passage.\n\n"
     'Output format:\n{\n  "type": "Key word or sentence",\n  "question": "Which is the key word or sentence of the passage?",\n'
     '  "options": ["1. option", "2. option", "3. option", "4. option"],\n'
     '  "answer": "answer number",\n  "explanation": "why it carries the main idea"\n}'),
]


# ---------------------------------------------------------------------------
# Subject, area and stage variables
# ---------------------------------------------------------------------------

_SUBJECTS = [
    ("science", "subjectScience", "Science",
     "Science: explores the principles and laws behind natural phenomena. Builds scientific thinking through observation, "
     "experiment and reasoning, covering physics, chemistry, life science and earth science at grade level."),
    ("social", "subjectSocial", "Social studies",
     "Social studies: helps students understand people and society through geography, history, civics and economics, "
     "building the qualities of a democratic citizen."),
]

_AREAS = [
    ("geography", "areaGeography", "Geography",
     "Geography: landforms, climate, natural and human environments, map reading and exchange between regions. "
     "Elementary students meet familiar environments; middle school students extend to spatial thinking."),
    ("social", "areaSocial", "Civics",
     "Civics: social norms, rules and laws, community order, and the rights and duties of citizens, "
     "introduced through everyday cases and then through institutions."),
    ("politics", "areaPolitics", "Politics",
     "Politics: democracy, participation, elections and the role of government. Elementary students start from class meetings; "
     "middle school students study institutions and democratic principles."),
    ("economy", "areaEconomy", "Economics",
     "Economics: needs and choices, production and consumption, money and work, markets and prices, and the allocation of resources."),
    ("chemistry", "areaChemistry", "Chemistry",
     "Chemistry: states of matter, dissolving and mixing, physical and chemical change, combustion, acids and bases."),
    ("physics", "areaPhysics", "Physics",
     "Physics: force and motion, speed, friction, energy conversion, light and sound, electricity and magnetism."),
    ("biology", "areaBiology", "Life science",
     "Life science: structure and function of plants and animals, growth and reproduction, senses, and ecosystems."),
    ("earth", "areaEarth", "Earth science",
     "Earth science: the structure of the Earth, weather and seasons, volcanoes and earthquakes, stars and planets, and climate."),
    ("science_inquiry", "areaScienceInquiry", "Scientific inquiry",
     "Scientific inquiry: hypothesis, controlled variables, data analysis and conclusions, applied at grade level "
     "through observation, experiment, research and discussion."),
]

_DIVISIONS = [
    ("middle", "divisionMiddle", "Middle school (grades 7-9)",
     "Middle school (grades 7-9): learners connect concepts and follow simple chains of reasoning. Sentences may be longer; "
     "structure the flow so relations between concepts are clear, gloss unfamiliar terms, and include questions that prompt thinking."),
    ("elem_high", "divisionElemHigh", "Upper elementary (grades 5-6)",
     "Upper elementary (grades 5-6): learners handle longer sentences and unfamiliar words and begin to follow cause and effect. "
     "Start from everyday examples and extend to principles, with word glosses and inquiry questions."),
    ("elem_mid", "divisionElemMid", "Middle elementary (grades 3-4)",
     "Middle elementary (grades 3-4): learners understand short sentences and familiar words. Ground explanations in concrete "
     "everyday experience, gloss new terms simply, and use questions such as 'why?' to draw interest."),
]


def _build_defaults() -> list[DefaultPrompt]:
    prompts = [
        DefaultPrompt(
            prompt_id="passage-system-base",
            category="passage",
            sub_category="system",
            key="system_base",
            name="System prompt",
            prompt_text=PASSAGE_SYSTEM_BASE,
            description="Base system prompt for passage generation",
            is_default=True,
        ),
    ]
    for prompt_id, key, sentences, paragraphs, name, description in _LENGTHS:
        prompts.append(DefaultPrompt(
            prompt_id=prompt_id,
            category="passage",
            sub_category="length",
            key=key,
            name=name,
            prompt_text=_length_format(sentences, paragraphs),
            description=description,
        ))
    for slug, name, text in _TEXT_TYPES:
        prompts.append(DefaultPrompt(
            prompt_id=f"passage-type-{slug}",
            category="passage",
            sub_category="textType",
            key=f"type_{slug}",
            name=name,
            prompt_text=text,
            description=f"{name} writing guide",
        ))

    prompts += [
        DefaultPrompt(
            prompt_id="vocabulary-system-base",
            category="vocabulary",
            sub_category="vocabularySystem",
            key="system_base",
            name="System prompt",
            prompt_text=VOCABULARY_SYSTEM_BASE,
            description="Base system prompt for vocabulary questions",
            is_default=True,
        ),
        DefaultPrompt(
            prompt_id="vocabulary-type-multiple",
            category="vocabulary",
            sub_category="vocabularyType",
            key="type_multiple",
            name="Multiple choice",
            prompt_text=VOCABULARY_TYPE_MULTIPLE,
            description="Multiple-choice vocabulary output format",
            is_default=True,
        ),
        DefaultPrompt(
            prompt_id="vocabulary-type-short",
            category="vocabulary",
            sub_category="vocabularyType",
            key="type_short",
            name="Short answer",
            prompt_text=VOCABULARY_TYPE_SHORT,
            description="Short-answer vocabulary output format",
        ),
        DefaultPrompt(
            prompt_id="paragraph-system-base",
            category="paragraph",
            sub_category="paragraphSystem",
            key="system_base",
            name="System prompt",
            prompt_text=PARAGRAPH_SYSTEM_BASE,
            description="Base system prompt for paragraph questions",
            is_default=True,
        ),
    ]
    for slug, name, text in _PARAGRAPH_TYPES:
        prompts.append(DefaultPrompt(
            prompt_id=f"paragraph-type-{slug}",
            category="paragraph",
            sub_category="paragraphType",
            key=f"type_{slug}",
            name=name,
            prompt_text=text,
            description=f"{name} question format",
        ))

    prompts.append(DefaultPrompt(
        prompt_id="comprehensive-system-base",
        category="comprehensive",
        sub_category="comprehensiveSystem",
        key="system_base",
        name="System prompt",
        prompt_text=COMPREHENSIVE_SYSTEM_BASE,
        description="Base system prompt for comprehensive questions",
        is_default=True,
    ))
    for slug, name, text in _COMPREHENSIVE_TYPES:
        prompts.append(DefaultPrompt(
            prompt_id=f"comprehensive-type-{slug}",
            category="comprehensive",
            sub_category="comprehensiveType",
            key=f"type_{slug}",
            name=name,
            prompt_text=text,
            description=f"{name} question format",
        ))

    for key, sub_category, name, text in _SUBJECTS:
        prompts.append(DefaultPrompt(
            prompt_id=f"subject-{key}",
            category="subject",
            sub_category=sub_category,
            key=key,
            name=name,
            prompt_text=text,
            description=f"{name} subject profile",
        ))
    for key, sub_category, name, text in _AREAS:
        prompts.append(DefaultPrompt(
            prompt_id=f"area-{key.replace('_', '-')}",
            category="area",
            sub_category=sub_category,
            key=key,
            name=name,
            prompt_text=text,
            description=f"{name} area profile",
        ))
    for key, sub_category, name, text in _DIVISIONS:
        prompts.append(DefaultPrompt(
            prompt_id=f"division-{key.replace('_', '-')}",
            category="division",
            sub_category=sub_category,
            key=key,
            name=name,
            prompt_text=text,
            description=f"{name} learner stage profile",
        ))
    return prompts


DEFAULT_PROMPTS: list[DefaultPrompt] = _build_defaults()

DEFAULT_REGISTRY = DefaultPromptRegistry(DEFAULT_PROMPTS)


# ---------------------------------------------------------------------------
# Display names for the admin console
# ---------------------------------------------------------------------------

CATEGORY_NAMES: dict[str, str] = {
    "passage": "Passage generation",
    "vocabulary": "Vocabulary questions",
    "paragraph": "Paragraph questions",
    "comprehensive": "Comprehensive questions",
    "subject": "Subject",
    "area": "Area",
    "division": "Learner stage",
}

SUBCATEGORY_NAMES: dict[str, str] = {
    "system": "System prompt",
    "length": "Passage length formats",
    "textType": "Text types",
    "vocabularySystem": "System prompt",
    "vocabularyType": "Question types",
    "paragraphSystem": "System prompt",
    "paragraphType": "Question types",
    "comprehensiveSystem": "System prompt",
    "comprehensiveType": "Question types",
    **{sub: name for _, sub, name, _ in _SUBJECTS},
    **{sub: name for _, sub, name, _ in _AREAS},
    **{sub: name for _, sub, name, _ in _DIVISIONS},
}

SUBCATEGORY_ORDER: dict[str, list[str]] = {
    "passage": ["system", "length", "textType"],
    "vocabulary": ["vocabularySystem", "vocabularyType"],
    "paragraph": ["paragraphSystem", "paragraphType"],
    "comprehensive": ["comprehensiveSystem", "comprehensiveType"],
    "subject": [sub for _, sub, _, _ in _SUBJECTS],
    "area": [sub for _, sub, _, _ in _AREAS],
    "division": [sub for _, sub, _, _ in _DIVISIONS],
}
