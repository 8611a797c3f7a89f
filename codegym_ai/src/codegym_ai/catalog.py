"""
Learning Path Catalog

Topic groups and problem names offered per language, plus the problem a new
session starts on.
"""

from typing import Any, Dict, List

from codegym_ai.schemas import ProblemSpec

DEFAULT_PROBLEM = ProblemSpec(topic="Array Manipulation", language="java", complexity="easy")

LEARNING_PATHS: List[Dict[str, Any]] = [
    {
        "language": "java",
        "name": "Java Path",
        "topics": [
            {"name": "Basics", "problems": ["Hello World", "Data Types", "Operators"]},
            {"name": "Control Flow", "problems": ["If-Else Statement", "Switch Statement", "For Loop", "While Loop"]},
            {"name": "Arrays & Strings", "problems": ["Array Manipulation", "String Reversal", "Palindrome Check"]},
            {"name": "Algorithms", "problems": ["Fibonacci Sequence", "Prime Number Check", "Factorial Calculation"]},
        ],
    },
    {
        "language": "python",
        "name": "Python Path",
        "topics": [
            {"name": "Basics", "problems": ["Hello World", "Variables", "Data Types"]},
            {"name": "Data Structures", "problems": ["Lists", "Tuples", "Dictionaries"]},
            {"name": "Functions", "problems": ["Function Definition", "Lambda Functions", "Recursion"]},
            {"name": "Algorithms", "problems": ["Linear Search", "Binary Search", "Sorting a List"]},
        ],
    },
    {
        "language": "c",
        "name": "C Path",
        "topics": [
            {"name": "Basics", "problems": ["Hello World", "Variables and Types", "Input/Output"]},
            {"name": "Pointers", "problems": ["Pointer Declaration", "Pointer Arithmetic", "Pointers and Arrays"]},
            {"name": "Structs", "problems": ["Struct Definition", "Accessing Members", "Structs and Functions"]},
            {"name": "File I/O", "problems": ["Reading from a file", "Writing to a file", "File Modes"]},
        ],
    },
]


def path_for(language: str) -> Dict[str, Any]:
    for path in LEARNING_PATHS:
        if path["language"] == language:
            return path
    raise KeyError(f"No learning path for language: {language}")


def problems_for(language: str) -> List[str]:
    """Every problem name on a language's path, in path order."""
    return [problem for topic in path_for(language)["topics"] for problem in topic["problems"]]
