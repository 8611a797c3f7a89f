"""
End-to-End Tests for the HTTP Flow Endpoints

Runs the FastAPI app in-process with the hosted model replaced by the
scripted fake client.
"""

import pytest
import sys
import os

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "codegym_ai", "src"))
sys.path.insert(0, os.path.join(project_root, "backend"))

# The app reads its settings at import time
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from fastapi.testclient import TestClient

import main
from codegym_ai.errors import ModelError
from codegym_ai.flows import CodeGymFlows


class TestFlowEndpoints:
    """Test suite for /api/flows/*."""

    @pytest.fixture
    def client(self, fake_llm):
        flows = CodeGymFlows(fake_llm)
        main.app.dependency_overrides[main.get_flows] = lambda: flows
        yield TestClient(main.app)
        main.app.dependency_overrides.clear()

    def test_health(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "chatbot" in response.json()["flows"]

    def test_catalog(self, client):
        body = client.get("/api/catalog").json()["response"]

        assert body["defaultProblem"] == {"topic": "Array Manipulation", "language": "java", "complexity": "easy"}
        assert len(body["learningPaths"]) == 3

    def test_catalog_for_language(self, client):
        body = client.get("/api/catalog", params={"language": "python"}).json()["response"]

        assert body["learningPath"]["language"] == "python"
        assert "Binary Search" in body["problems"]

    def test_catalog_unknown_language_is_400(self, client):
        response = client.get("/api/catalog", params={"language": "rust"})

        assert response.status_code == 400
        assert "language" in response.json()["error"]

    def test_generate_problem(self, client, fake_llm, fibonacci_problem):
        fake_llm.script("generate-problem", fibonacci_problem)

        response = client.post("/api/flows/generate-problem", json={
            "topic": "Fibonacci", "language": "python", "complexity": "easy",
        })

        assert response.status_code == 200
        problem = response.json()["response"]
        assert set(problem) == {"problemStatement", "expectedOutput", "codeSkeleton"}
        assert problem["codeSkeleton"] == "def fib(n):\n    pass"

    def test_invalid_input_is_400_without_model_call(self, client, fake_llm):
        response = client.post("/api/flows/generate-problem", json={"topic": "", "language": "java"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid input")
        assert "topic" in response.json()["error"]
        assert fake_llm.call_count == 0

    def test_non_object_body_is_400(self, client, fake_llm):
        response = client.post("/api/flows/check-code", json=["print(1)"])

        assert response.status_code == 400
        assert "error" in response.json()
        assert fake_llm.call_count == 0

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/api/flows/run-code",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_model_failure_is_502(self, client, fake_llm):
        fake_llm.script("generate-problem", ModelError("generate-problem", "timeout"))

        response = client.post("/api/flows/generate-problem", json={"topic": "Loops", "language": "c"})

        assert response.status_code == 502
        assert response.json() == {"error": "Failed to generate problem."}

    def test_enhance_raw_problem_defaults(self, client, fake_llm):
        fake_llm.script("enhance-problem", {
            "problemStatement": "**PROBLEM STATEMENT:**\nTwo Sum",
            "expectedOutput": "[0, 1]",
            "codeSkeleton": "class Solution {}",
        })

        response = client.post("/api/flows/enhance-problem", json={"rawProblem": "Two Sum: given nums..."})

        assert response.status_code == 200
        prompt = fake_llm.calls[0]["prompt"]
        assert "Two Sum: given nums..." in prompt
        assert "LANGUAGE: Java" in prompt
        assert "COMPLEXITY: medium" in prompt

    def test_check_code(self, client, fake_llm):
        fake_llm.script("check-code", {"feedback": "Good names.", "suggestions": "Extract a helper."})

        response = client.post("/api/flows/check-code", json={
            "code": "int main() { return 0; }", "language": "c", "problem": "Return zero",
        })

        assert response.json() == {"response": {"feedback": "Good names.", "suggestions": "Extract a helper."}}

    def test_run_code_accepts_problem_key(self, client, fake_llm):
        fake_llm.script("run-code", {"status": "wrong", "output": "**Status:** 🔴 FAIL"})

        response = client.post("/api/flows/run-code", json={
            "code": "print(0)", "language": "python", "problem": "Print the 5th Fibonacci number",
        })

        assert response.status_code == 200
        assert response.json()["response"]["status"] == "fail"
        assert "Print the 5th Fibonacci number" in fake_llm.calls[0]["prompt"]

    def test_chatbot(self, client, fake_llm):
        fake_llm.script("chatbot", {"response": "Start from the **base case**."})

        response = client.post("/api/flows/chatbot", json={
            "question": "Where do I start?",
            "problemStatement": "Fibonacci",
            "language": "python",
            "history": [{"sender": "user", "text": "hi"}, {"sender": "bot", "text": "hello"}],
            "responseLength": "short",
        })

        assert response.json() == {"response": {"answer": "Start from the base case."}}
        assert "user: hi\nbot: hello" in fake_llm.calls[0]["prompt"]
