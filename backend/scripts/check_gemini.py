#!/usr/bin/env python3
"""
Gemini connectivity check.

Usage (from the backend directory):
  python scripts/check_gemini.py

Or from the project root:
  cd backend && PYTHONPATH=. python scripts/check_gemini.py

Required environment (.env or export):
  GEMINI_API_KEY=...
  GEMINI_MODEL=gemini-2.5-flash          # optional
"""
import asyncio
import os
import sys

# Make backend/app importable
_backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

# Load .env (relative to backend)
_env_path = os.path.join(_backend_dir, ".env")
if os.path.isfile(_env_path):
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, _, v = line.partition("=")
                k, v = k.strip(), v.strip().strip('"').strip("'")
                if k and v and k not in os.environ:
                    os.environ[k] = v


def print_section(title: str) -> None:
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


def check_config() -> bool:
    print_section("1. Configuration")
    from app.config import get_settings

    settings = get_settings()
    key = (settings.GEMINI_API_KEY or "").strip()

    print(f"  GEMINI_API_KEY: {'(set)' if key else '(empty)'}")
    print(f"  GEMINI_MODEL: {settings.GEMINI_MODEL}")
    print(f"  GEMINI_VOICE_MODEL: {settings.GEMINI_VOICE_MODEL}")

    if not key:
        print("\n  [FAIL] GEMINI_API_KEY is empty. Set it in .env and run again.")
        return False
    print("\n  [OK] Configuration looks valid")
    return True


async def check_generation() -> bool:
    print_section("2. Raw generate_content call")
    try:
        from google import genai

        from app.config import get_settings

        settings = get_settings()
        client = genai.Client(api_key=settings.GEMINI_API_KEY.strip())
        response = await client.aio.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents="Reply with the single word: pong",
        )
        print(f"  Model replied: {(response.text or '').strip()!r}")
        print("\n  [OK] API reachable")
        return True
    except Exception as e:
        print(f"\n  [FAIL] Request failed: {e}")
        import traceback

        traceback.print_exc()
        return False


async def check_assistant_service() -> bool:
    print_section("3. AiAssistant (app service)")
    from app.services.ai_assistant import ANALYSIS_UNAVAILABLE, ai_assistant

    sample = "Agent transferred the customer to the wrong department twice."
    refined = await ai_assistant.refine(sample, "Wrong Department")
    analysis = await ai_assistant.analyze(sample)
    print(f"  refine():  {refined[:120]!r}")
    print(f"  analyze(): {analysis[:120]!r}")

    if refined == sample or analysis == ANALYSIS_UNAVAILABLE:
        print("\n  [FAIL] The service fell back to its placeholder; check the logs above.")
        return False
    print("\n  [OK] AiAssistant works end to end")
    return True


def main() -> None:
    print("\n  Team Feedback - Gemini connectivity check")
    if not check_config():
        sys.exit(1)
    if not asyncio.run(check_generation()):
        sys.exit(1)
    if not asyncio.run(check_assistant_service()):
        sys.exit(1)
    print_section("Done")
    print("  All checks passed.\n")


if __name__ == "__main__":
    main()
