"""
End-to-End Tests for a Full Practice Session

Tests the complete learner journey:
- Generate a problem → chat for a hint → check code → run until correct
- Progress and chat persistence across sessions
- The same journey through the HTTP gateway against the running app
"""

import pytest
import sys
import os

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "codegym_ai", "src"))
sys.path.insert(0, os.path.join(project_root, "backend"))

os.environ.setdefault("OPENAI_API_KEY", "sk-test")

import httpx

import main
from codegym_ai.errors import ModelError
from codegym_ai.flows import CodeGymFlows
from codegym_ai.gateway import HttpGateway, LocalGateway
from codegym_ai.session import PracticeSession
from codegym_ai.storage import JsonFileStore

SOLUTION = "def fib(n):\n    a, b = 0, 1\n    for _ in range(n):\n        a, b = b, a + b\n    return a"


def script_journey(fake_llm, fibonacci_problem):
    fake_llm.script("generate-problem", fibonacci_problem)
    fake_llm.script("chatbot", {"answer": "What are fib(0) and fib(1)?"})
    fake_llm.script("check-code", {"feedback": "Clear loop.", "suggestions": "Add a docstring."})
    fake_llm.script(
        "run-code",
        {"status": "🟡 HALFWAY", "output": "**Status:** 🟡 HALFWAY"},
        {"status": "correct", "output": "**Status:** 🟢 CORRECT"},
    )


class TestLocalPracticeFlow:
    """Full journey with the flows running in-process."""

    @pytest.mark.asyncio
    async def test_fibonacci_journey(self, fake_llm, fibonacci_problem, tmp_path):
        script_journey(fake_llm, fibonacci_problem)
        store = JsonFileStore(str(tmp_path / "storage.json"))
        session = PracticeSession(LocalGateway(CodeGymFlows(fake_llm)), store=store)

        problem = await session.generate_problem("Fibonacci", "python", "easy")
        assert "Fibonacci" in problem.problem_statement
        assert session.code == "def fib(n):\n    pass"

        reply = await session.send_chat_message("How do I begin?")
        assert reply.text == "What are fib(0) and fib(1)?"

        session.set_code("def fib(n):\n    return n")
        halfway = await session.run_code()
        assert halfway.status == "halfway"

        session.set_code(SOLUTION)
        feedback = await session.check_code()
        assert feedback.suggestions == "Add a docstring."

        result = await session.run_code()
        assert result.status == "correct"
        assert session.progress.record.solved_problems == 1
        assert any(n.title == "Problem Solved!" for n in session.notifications)

        # A new session on the same store sees the saved chat and progress
        reopened = PracticeSession(LocalGateway(CodeGymFlows(fake_llm)), store=JsonFileStore(store.path))
        assert [m.sender for m in reopened.chat] == ["user", "bot"]
        assert reopened.progress.record.achievement("first-problem").unlocked

    @pytest.mark.asyncio
    async def test_model_outage_surfaces_as_notifications(self, fake_llm, fibonacci_problem):
        fake_llm.script("generate-problem", fibonacci_problem)
        fake_llm.script("run-code", ModelError("run-code", "timeout"))
        fake_llm.script("chatbot", ModelError("chatbot", "timeout"))
        session = PracticeSession(LocalGateway(CodeGymFlows(fake_llm)))

        await session.generate_problem("Fibonacci", "python", "easy")
        assert await session.run_code() is None
        reply = await session.send_chat_message("help")

        assert session.notifications[-1].description == "Failed to run code via AI."
        assert reply.text == "Sorry, I encountered an error. Please try again."


class TestHttpPracticeFlow:
    """Full journey through HttpGateway against the FastAPI app."""

    @pytest.fixture
    def override_flows(self, fake_llm):
        flows = CodeGymFlows(fake_llm)
        main.app.dependency_overrides[main.get_flows] = lambda: flows
        yield flows
        main.app.dependency_overrides.clear()

    def make_gateway(self):
        transport = httpx.ASGITransport(app=main.app)
        return HttpGateway(client=httpx.AsyncClient(transport=transport, base_url="http://codegym.test"))

    @pytest.mark.asyncio
    async def test_fibonacci_journey_over_http(self, override_flows, fake_llm, fibonacci_problem):
        script_journey(fake_llm, fibonacci_problem)
        gateway = self.make_gateway()
        session = PracticeSession(gateway)

        try:
            await session.generate_problem("Fibonacci", "python", "easy")
            await session.send_chat_message("How do I begin?")
            session.set_code(SOLUTION)
            await session.check_code()
            await session.run_code()
            result = await session.run_code()
        finally:
            await gateway.aclose()

        assert session.problem.code_skeleton == "def fib(n):\n    pass"
        assert session.chat.last.text == "What are fib(0) and fib(1)?"
        assert session.feedback.feedback == "Clear loop."
        assert result.status == "correct"
        run_prompt = fake_llm.calls_for("run-code")[0]["prompt"]
        assert "fib(10) = 55" in run_prompt

    @pytest.mark.asyncio
    async def test_error_body_becomes_gateway_error(self, override_flows, fake_llm, fibonacci_problem):
        fake_llm.script("generate-problem", fibonacci_problem)
        fake_llm.script("check-code", ModelError("check-code", "timeout"))
        gateway = self.make_gateway()
        session = PracticeSession(gateway)

        try:
            await session.generate_problem("Fibonacci", "python", "easy")
            result = await session.check_code()
        finally:
            await gateway.aclose()

        assert result is None
        assert session.notifications[-1].description == "Could not check your code. Please try again."
