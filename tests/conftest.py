"""
Shared test fixtures.

The hosted model is replaced by FakeLLMClient, which answers from a script of
canned replies per flow and records every call it receives.
"""

import os
import sys
from collections import defaultdict, deque
from typing import Any, Dict, List

import pytest

project_root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
sys.path.insert(0, os.path.join(project_root, "codegym_ai", "src"))

from codegym_ai.errors import ModelError
from codegym_ai.flows import CodeGymFlows


FIBONACCI_PROBLEM = {
    "problemStatement": (
        "**PROBLEM STATEMENT:**\nWrite a function that returns the n-th Fibonacci number.\n\n"
        "**Examples:**\n**Example 1:**\nInput: 5\nOutput: 5"
    ),
    "expectedOutput": "**Test Cases:**\n- fib(0) = 0\n- fib(5) = 5\n- fib(10) = 55",
    "codeSkeleton": "def fib(n):\n    pass",
}


class FakeLLMClient:
    """
    Stand-in for LLMClient.

    Replies are queued per flow name. A queued Exception is raised instead of
    returned. When a flow's queue is empty the default reply for that flow is
    used, if one was set.
    """

    def __init__(self):
        self.replies: Dict[str, deque] = defaultdict(deque)
        self.defaults: Dict[str, Any] = {}
        self.calls: List[Dict[str, Any]] = []

    def script(self, flow: str, *replies: Any) -> "FakeLLMClient":
        self.replies[flow].extend(replies)
        return self

    def default(self, flow: str, reply: Any) -> "FakeLLMClient":
        self.defaults[flow] = reply
        return self

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def calls_for(self, flow: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["flow"] == flow]

    async def complete_json(self, flow, system, prompt, max_tokens=None):
        self.calls.append({"flow": flow, "system": system, "prompt": prompt, "max_tokens": max_tokens})
        if self.replies[flow]:
            reply = self.replies[flow].popleft()
        elif flow in self.defaults:
            reply = self.defaults[flow]
        else:
            raise ModelError(flow, "no scripted reply")
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def flows(fake_llm):
    return CodeGymFlows(fake_llm)


@pytest.fixture
def fibonacci_problem():
    return dict(FIBONACCI_PROBLEM)
