from __future__ import annotations
import argparse
import asyncio
import json
import sys
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent.resolve()
sys.path.insert(0, str(BASE_DIR))
from cvforge.errors import CVForgeError
from cvforge.graph.workflow import WorkflowState, build_graph
from cvforge.i18n import SUPPORTED_LANGUAGES
from cvforge.llm_provider import get_engine, normalize_provider
from cvforge.session import Session
from cvforge.settings import SETTINGS
from cvforge.state import Profile
from cvforge.utils import read_attachment, setup_logger


def _read_notes(value: str) -> str:
    p = Path(value)
    if p.is_file():
        return p.read_text(encoding="utf-8")
    return value


def main():
    load_dotenv()  # load .env if exists

    parser = argparse.ArgumentParser(description="Build a candidate profile from a CV and write a recruiter recommendation")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--cv", help="Path to CV file (.pdf, image, .txt or .md)")
    src.add_argument("--text", help="CV content as plain text")
    parser.add_argument("--profile", help="Profile JSON to start from (default: sample profile)")
    parser.add_argument("--photo", help="Profile picture to attach")
    parser.add_argument("--notes", help="Recruiter notes, inline or a path to a text file")
    parser.add_argument("--translate", action="store_true", help="Translate the profile to the other language")
    parser.add_argument("--language", choices=list(SUPPORTED_LANGUAGES), help="Language the profile is currently in")
    parser.add_argument("--provider", default=SETTINGS.provider, choices=["auto", "gemini", "mistral"], help="LLM provider selection")
    parser.add_argument("--out", default="profile.json", help="Output profile JSON path")
    parser.add_argument("--recommendation-out", default="recommendation.txt", help="Output recommendation path")
    args = parser.parse_args()

    setup_logger(SETTINGS.log_level, SETTINGS.log_json)

    try:
        profile = None
        language = args.language
        if args.profile:
            data = json.loads(Path(args.profile).read_text(encoding="utf-8"))
            # accept both a bare profile and a file written by --out
            if isinstance(data, dict) and "profile" in data:
                language = language or data.get("language")
                data = data["profile"]
            profile = Profile.model_validate(data)
        session = Session(
            get_engine(normalize_provider(args.provider)),
            profile=profile,
            language=language or SETTINGS.default_language,
        )
        if args.photo:
            session.set_photo(read_attachment(args.photo))
    except (OSError, ValueError, CVForgeError) as e:
        print(f"[ERR] {e}")
        sys.exit(1)

    state = WorkflowState(
        cv_path=args.cv,
        cv_text=args.text,
        notes=_read_notes(args.notes) if args.notes else None,
        with_translation=args.translate,
    )
    run = build_graph(session)
    final = asyncio.run(run(state))

    if final.errors:
        print("[WARN] Pipeline completed with errors:")
        for e in final.errors:
            print(" -", e)

    snapshot = session.snapshot()
    out_path = Path(args.out)
    out_path.write_text(
        json.dumps(
            {"language": session.language, "profile": snapshot.model_dump(mode="json", by_alias=True)},
            ensure_ascii=False,
            indent=2,
        ),
        encoding="utf-8",
    )
    print(f"[OK] Profile ({session.language}) written to: {out_path.resolve()}")

    if final.recommendation:
        rec_path = Path(args.recommendation_out)
        rec_path.write_text(final.recommendation, encoding="utf-8")
        print(f"[OK] Recommendation written to: {rec_path.resolve()}")


if __name__ == "__main__":
    main()
