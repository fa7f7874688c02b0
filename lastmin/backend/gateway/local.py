from __future__ import annotations

import json
import math
import re
import zlib
from collections import Counter
from typing import Dict, List

from lastmin.backend import constants


_CHAT_TEMPLATES = (
	'I understand you\'re asking about: "{message}". Here\'s a helpful response based on the context provided.',
	'Thank you for your question about "{message}". Let me provide some insights on this topic.',
	'That\'s an interesting question about "{message}". Here\'s what I can tell you about it.',
	'Regarding "{message}" - this is a common topic students ask about. Let me explain.',
)
_CONTEXT_NOTE = " I've taken the {words} words of supporting context you shared into account."
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z\-]{3,}")
_STOPWORDS = {
	"about",
	"after",
	"also",
	"because",
	"been",
	"before",
	"being",
	"between",
	"could",
	"does",
	"each",
	"from",
	"have",
	"into",
	"just",
	"more",
	"most",
	"only",
	"other",
	"over",
	"same",
	"some",
	"such",
	"than",
	"that",
	"their",
	"them",
	"then",
	"there",
	"these",
	"they",
	"this",
	"those",
	"through",
	"very",
	"were",
	"what",
	"when",
	"where",
	"which",
	"while",
	"will",
	"with",
	"would",
	"your",
}
_DIFFICULTY_CYCLE = ("easy", "medium", "hard")
_SUMMARY_SENTENCES = {"brief": 3, "bullet-points": 6, "detailed": 8}


def _clean(text: str) -> str:
	return " ".join(text.split()).strip()


def _sentences(text: str) -> List[str]:
	return [sentence for sentence in (_clean(part) for part in _SENTENCE_RE.split(text)) if sentence]


def _key_terms(text: str, limit: int) -> List[str]:
	counts = Counter(word.lower() for word in _WORD_RE.findall(text) if word.lower() not in _STOPWORDS)
	ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
	return [word for word, _count in ranked[:limit]]


def estimate_difficulty(words: int) -> str:
	if words > 500:
		return "advanced"
	if words > 200:
		return "intermediate"
	return "beginner"


def reading_time_minutes(words: int) -> int:
	return math.ceil(words / constants.WORDS_PER_MINUTE)


class LocalGenerator:
	"""Deterministic stand-in for the upstream provider.

	Output is schema-conformant with placeholder semantics, and the same input
	always yields the same text.
	"""

	name = "local"

	def chat(self, message: str, context: str | None = None) -> str:
		cleaned = _clean(message)
		index = zlib.crc32(cleaned.encode("utf-8")) % len(_CHAT_TEMPLATES)
		reply = _CHAT_TEMPLATES[index].format(message=cleaned)
		context_words = len(context.split()) if context else 0
		if context_words:
			reply += _CONTEXT_NOTE.format(words=context_words)
		return reply

	def summarize(self, text: str, summary_type: str = "detailed") -> str:
		sentences = _sentences(text)
		limit = _SUMMARY_SENTENCES.get(summary_type, _SUMMARY_SENTENCES["detailed"])
		picked = sentences[:limit]
		if summary_type == "bullet-points":
			if not picked:
				return "• Key point one\n• Important concept two\n• Main takeaway three"
			return "\n".join(f"• {sentence}" for sentence in picked)
		if not picked:
			return "This is a summary of the provided text content."
		return " ".join(picked)

	def analyze(self, text: str) -> str:
		words = len(text.split())
		terms = _key_terms(text, 3) or ["main concept", "supporting ideas", "key terms"]
		payload: Dict[str, object] = {
			"difficulty": estimate_difficulty(words),
			"keyTopics": [
				{"topic": term.title(), "importance": max(10 - position * 2, 1)}
				for position, term in enumerate(terms)
			],
			"concepts": [
				{"name": "Primary Topic", "definition": "The main subject matter discussed", "importance": 9},
				{"name": "Secondary Concepts", "definition": "Supporting ideas and explanations", "importance": 7},
			],
			"wordCount": words,
			"readingTimeMinutes": reading_time_minutes(words),
		}
		return json.dumps(payload)

	def quiz(self, text: str, count: int) -> str:
		terms = _key_terms(text, count) or ["the material"]
		questions = []
		for index in range(count):
			term = terms[index % len(terms)]
			number = index + 1
			questions.append(
				{
					"question": f"Question {number}: which statement best describes '{term}' in the provided text?",
					"options": [
						f"Option A - {term} is a central idea of the text",
						f"Option B - {term} is mentioned only in passing",
						f"Option C - {term} contradicts the main argument",
						f"Option D - {term} is unrelated to the topic",
					],
					"correctIndex": index % constants.QUIZ_OPTION_COUNT,
					"explanation": f"This is the explanation for question {number}.",
					"difficulty": _DIFFICULTY_CYCLE[index % len(_DIFFICULTY_CYCLE)],
				}
			)
		return json.dumps(questions)
