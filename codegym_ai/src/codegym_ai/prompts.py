"""
Prompt Templates

One canonical prompt per flow. Rendering is deterministic: optional inputs
only add or drop a section. Every prompt ends with the JSON shape the model
must answer with, since completions are requested in JSON mode.
"""

from typing import Dict, List

from codegym_ai.schemas import (
    ChatbotInput,
    CheckCodeInput,
    EnhanceProblemInput,
    GenerateProblemInput,
    RunCodeInput,
)

LANGUAGE_NAMES: Dict[str, str] = {
    "java": "Java",
    "python": "Python",
    "c": "C",
}

RESPONSE_LENGTH_GUIDE: Dict[str, str] = {
    "short": "Answer in 1-2 sentences.",
    "medium": "Answer in 2-3 sentences.",
    "full": "Answer in 3-4 sentences, with a small example if it helps.",
}

SYSTEM_PROMPTS: Dict[str, str] = {
    "generate-problem": "You are a coding problem generator for a practice platform. You always answer with a single JSON object.",
    "enhance-problem": "You are an expert coding problem formatter. You always answer with a single JSON object.",
    "check-code": "You are an AI code reviewer focused on code quality. You always answer with a single JSON object.",
    "run-code": "You are an expert code execution analyzer. You evaluate code by reasoning about it, you never claim to have run it. You always answer with a single JSON object.",
    "chatbot": "You are a friendly and helpful coding assistant bot. You always answer with a single JSON object.",
}

PROBLEM_FORMAT = """**PROBLEM STATEMENT:**
[Clean problem description in 2-3 sentences]

**Examples:**
**Example 1:**
Input: [input]
Output: [output]

**Example 2:**
Input: [input]
Output: [output]

**Constraints:**
- [constraint 1]
- [constraint 2]"""

EXPECTED_OUTPUT_FORMAT = """**Test Cases:**
[Input/output pairs]

**Performance Requirements:**
[Time/space complexity if relevant]"""


def language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, language)


def render_generate_problem(data: GenerateProblemInput) -> str:
    lang = language_name(data.language)
    parts = [
        "Generate a coding problem based on the provided topic, language and complexity.",
        "",
        f"Topic: {data.topic}",
        f"Language: {lang}",
        f"Complexity: {data.complexity}",
    ]
    if data.hints and data.hints.strip():
        parts.append(f"Hints: {data.hints.strip()}")
    parts += [
        "",
        "Ensure the problem is well-defined and testable.",
        f"The problemStatement must follow this markdown layout exactly:\n{PROBLEM_FORMAT}",
        "",
        f"The expectedOutput must follow this markdown layout:\n{EXPECTED_OUTPUT_FORMAT}",
        "",
        f"The codeSkeleton is plain {lang} source (no markdown fences) that compiles, declares the function or",
        "main entry point to fill in, and leaves the body for the learner.",
    ]
    if not (data.hints and data.hints.strip()):
        parts.append("Do not mention hints in the response.")
    parts += [
        "",
        'Respond in JSON format: {"problemStatement": "...", "expectedOutput": "...", "codeSkeleton": "..."}',
    ]
    return "\n".join(parts)


def render_enhance_problem(data: EnhanceProblemInput) -> str:
    lang = language_name(data.language)
    parts = [
        "Transform raw problem content copied from a website into a clean, professional coding problem.",
        "",
        "RAW PROBLEM CONTENT:",
        data.problem_statement,
        "",
    ]
    if data.expected_output.strip():
        parts += ["RAW EXPECTED OUTPUT:", data.expected_output, ""]
    parts += [
        f"LANGUAGE: {lang}",
        f"COMPLEXITY: {data.complexity}",
    ]
    if data.topic.strip():
        parts.append(f"TOPIC: {data.topic}")
    parts += [
        "",
        "Keep the original meaning. Do not invent constraints the raw content contradicts.",
        "Use **bold** for every section header and bullet points for lists. Never write the text \"Code Block\".",
        "",
        f"The problemStatement must follow this layout:\n{PROBLEM_FORMAT}",
        "",
        f"The expectedOutput must follow this layout:\n{EXPECTED_OUTPUT_FORMAT}",
        "",
        f"The codeSkeleton is plain {lang} starting code without markdown fences.",
        "",
        'Respond in JSON format: {"problemStatement": "...", "expectedOutput": "...", "codeSkeleton": "..."}',
    ]
    return "\n".join(parts)


def render_check_code(data: CheckCodeInput) -> str:
    lang = language_name(data.language)
    parts = [
        "Analyze the following code and give feedback on potential quality issues and suggestions for improvement.",
        "",
        f"Language: {lang}",
    ]
    if data.problem and data.problem.strip():
        parts += ["", "The code is meant to solve this problem:", data.problem.strip()]
    parts += [
        "",
        "Code:",
        f"```{data.language}",
        data.code,
        "```",
        "",
        "Give specific feedback on the single responsibility principle, naming, commenting and readability.",
        "Include suggestions for refactoring or optimization where applicable.",
        "Do not check for correctness, only code quality.",
        "",
        'Respond in JSON format: {"feedback": "...", "suggestions": "..."}',
    ]
    return "\n".join(parts)


def render_run_code(data: RunCodeInput) -> str:
    parts = [
        "Evaluate whether this code correctly solves the problem.",
        "",
        "CODE:",
        f"```{data.language}",
        data.code,
        "```",
        "",
        "PROBLEM STATEMENT:",
        data.problem_statement or "(not provided)",
    ]
    if data.expected_output.strip():
        parts += ["", "EXPECTED OUTPUT:", data.expected_output]
    parts += [
        "",
        "Pick exactly one status:",
        "- correct: solves the problem for all cases",
        "- halfway: good progress, key parts missing",
        "- moderate: almost there, small bugs or edge cases",
        "- fail: does not solve the problem or does not compile",
        "",
        "The output field is at most 5 lines in this markdown layout:",
        "**Status:** [🟢 CORRECT / 🟡 HALFWAY / 🟠 MODERATE / 🔴 FAIL]",
        "**Key Result:** [one sentence]",
        "**Main Issue:** [one line]",
        "**Quick Fix:** [one line]",
        "**Next Step:** [one line]",
        "",
        'Respond in JSON format: {"status": "correct|halfway|moderate|fail", "output": "..."}',
    ]
    return "\n".join(parts)


def render_history(history: List) -> str:
    return "\n".join(f"{turn.sender}: {turn.text}" for turn in history)


def render_chatbot(data: ChatbotInput) -> str:
    lang = language_name(data.language)
    parts = [
        f"Help a learner solve a coding problem in {lang} by answering their question.",
        "",
        "Problem Statement:",
        data.problem_statement or "(no problem loaded)",
    ]
    if data.code and data.code.strip():
        parts += ["", "Their current code is:", f"```{data.language}", data.code, "```"]
    if data.history:
        parts += ["", "Conversation so far:", render_history(data.history)]
    parts += [
        "",
        f'The learner\'s new question is: "{data.question}"',
        "",
        "Do not give away the full solution unless they explicitly ask for it. Guide them towards the answer.",
        RESPONSE_LENGTH_GUIDE[data.response_length],
        "Write clean text without markdown such as asterisks for bolding.",
        "",
        'Respond in JSON format: {"answer": "..."}',
    ]
    return "\n".join(parts)
