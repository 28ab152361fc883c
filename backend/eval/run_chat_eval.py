import json
from pathlib import Path
import time

import requests

API_BASE = "http://127.0.0.1:8000"  # adjust if needed
MODELS = ["workers-ai", "gemini"]


def call_chat(model: str, query: str):
  payload = {
      "model": model,
      "messages": [{"role": "user", "content": query}],
  }
  start = time.time()
  first_chunk_at = None
  chunks = []
  with requests.post(f"{API_BASE}/api/chat", json=payload, stream=True, timeout=120) as resp:
      if resp.status_code != 200:
          return {
              "error": f"status {resp.status_code}",
              "latency_sec": time.time() - start,
              "first_chunk_sec": None,
              "chunks": 0,
              "reply": None,
          }
      for chunk in resp.iter_content(chunk_size=None, decode_unicode=True):
          if first_chunk_at is None:
              first_chunk_at = time.time() - start
          chunks.append(chunk)
  return {
      "error": None,
      "latency_sec": time.time() - start,
      "first_chunk_sec": first_chunk_at,
      "chunks": len(chunks),
      "reply": "".join(chunks),
  }


def main() -> None:
  here = Path(__file__).resolve().parent
  test_file = here / "chat_testset.json"

  tests = json.loads(test_file.read_text(encoding="utf-8"))

  results = []
  for item in tests:
      qid = item["id"]
      query = item["query"]

      print(f"\n=== {qid} ===")
      print("Q:", query)

      entry = {"id": qid, "query": query}
      for model in MODELS:
          result = call_chat(model, query)
          print(f"\n[{model.upper()}]")
          print("Reply:", result["reply"])
          print(f"Latency: {result['latency_sec']:.2f}s", "(error:", result["error"], ")")
          entry[model] = result

      results.append(entry)

  out_path = here / "chat_eval_results.json"
  out_path.write_text(json.dumps(results, indent=2, ensure_ascii=False), encoding="utf-8")
  print(f"\nSaved raw results to: {out_path}")


if __name__ == "__main__":
  main()
