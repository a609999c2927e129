"""
Question Loader Script - loads a question bank into the service via API.

Reads a JSON file holding a list of questions (or {"questions": [...]}) and
posts it to the ingestion endpoint.

Usage:
    python load_data.py                                  # questions.json, default URL
    python load_data.py bank.json                        # custom file
    python load_data.py bank.json http://backend:8000    # custom file and API URL
"""

import json
import os
import sys

import httpx


def post_json(url, data):
    with httpx.Client(timeout=30.0) as client:
        resp = client.post(url, json=data)
        resp.raise_for_status()
        return resp.json()


def normalize_question(raw: dict) -> dict:
    """Accept the content team's export shape ("question"/"choices") as well as the API shape."""
    return {
        "id": raw.get("id"),
        "text": raw.get("text") or raw.get("question", ""),
        "difficulty": raw.get("difficulty"),
        "options": raw.get("options") or raw.get("choices") or [],
        "correct_choice": raw.get("correct_choice", raw.get("correctChoice")),
        "explanation": raw.get("explanation"),
        "fundamentals": raw.get("fundamentals") or {},
    }


def main():
    data_file = sys.argv[1] if len(sys.argv) > 1 else "questions.json"
    api_url = sys.argv[2] if len(sys.argv) > 2 else os.getenv("API_URL", "http://localhost:8000")
    ingest_url = f"{api_url}/api/ingest/questions"

    if not os.path.exists(data_file):
        print(f"Error: Could not find {data_file}")
        sys.exit(1)

    print(f"Loading questions from: {data_file}")
    with open(data_file, "r") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("questions", [])

    questions = [normalize_question(q) for q in raw]
    print(f"Found {len(questions)} questions to ingest")
    print(f"Sending to: {ingest_url}")
    print()

    try:
        result = post_json(ingest_url, {"questions": questions})
    except httpx.HTTPStatusError as e:
        print(f"HTTP Error {e.response.status_code}: {e.response.text}")
        sys.exit(1)

    print("=" * 60)
    print("INGESTION SUMMARY")
    print("=" * 60)
    print(f"  Total Received: {result.get('total_received', '?')}")
    print(f"  Created:        {result.get('created', '?')}")
    print(f"  Updated:        {result.get('updated', '?')}")
    print(f"  Errors:         {result.get('errors', '?')}")
    print("=" * 60)
    print()

    for d in result.get("details", []):
        status = d.get("status", "?")
        reason = f" ({d.get('reason')})" if status == "ERROR" else ""
        print(f"  {d.get('question_id', '?')}: {status}{reason}")

    print()
    print("Question bank loaded.")


if __name__ == "__main__":
    main()
