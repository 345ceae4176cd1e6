"""Command line entry point for the capture assistant."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from capture_assistant.config import AssistantConfig
from capture_assistant.models import CaptureAnalysis
from capture_assistant.pipeline import CaptureAssistant
from capture_assistant.screen_capture import ScreenCapturer
from capture_assistant.session import ChatSession, SessionStore
from capture_assistant.utils import truncate

logger = logging.getLogger(__name__)


def analysis_to_dict(analysis: CaptureAnalysis) -> Dict[str, Any]:
    table = analysis.table
    return {
        "sql_query": analysis.sql_query,
        "query_analysis": asdict(analysis.query_analysis) if analysis.query_analysis else None,
        "table": table.to_records() if table else None,
        "table_kind": table.kind if table else None,
        "has_table": analysis.has_table,
        "email": asdict(analysis.email) if analysis.email else None,
        "meeting": asdict(analysis.meeting) if analysis.meeting else None,
    }


def print_analysis(assistant: CaptureAssistant, analysis: CaptureAnalysis) -> None:
    if analysis.cleaned_text:
        print(f"captured: {truncate(analysis.cleaned_text.replace(chr(10), ' '))}")
    for notice in assistant.notices:
        print(f"[{notice.kind}] {notice.message}")
    chart = assistant.visualize()
    if chart is not None:
        print(f"chart ({chart.chart_type}): {chart.label}")
        for label, value in zip(chart.labels, chart.values):
            print(f"  {label}: {value:g}")


def run_parse(path: Path) -> int:
    logger.debug("Parsing %s", path)
    text = path.read_text(encoding="utf-8", errors="replace")
    assistant = CaptureAssistant(AssistantConfig.from_env(), session=ChatSession(SessionStore()))
    try:
        analysis = assistant.analyze_text(text)
        print(json.dumps(analysis_to_dict(analysis), indent=2, ensure_ascii=False, default=str))
    finally:
        assistant.close()
    return 0


def run_capture(save_dir: Path | None = None) -> int:
    capturer = ScreenCapturer()
    if not capturer.is_supported():
        print("No screen capture backend available. Install the 'capture' extra (mss).")
        return 1
    assistant = CaptureAssistant(AssistantConfig.from_env(), capturer=capturer)
    try:
        analysis = assistant.capture()
        if save_dir is not None and assistant.last_image is not None:
            print(f"saved: {capturer.save(assistant.last_image, save_dir)}")
        print_analysis(assistant, analysis)
    finally:
        assistant.close()
    return 0


def run_chat() -> int:
    assistant = CaptureAssistant(AssistantConfig.from_env())
    print(assistant.session.messages[-1].text)
    print("Type /capture to read the screen, /visualize for chart data, /clear to reset, /quit to exit.")
    try:
        while True:
            try:
                line = input("> ").strip()
            except EOFError:
                break
            if line in {"/quit", "/exit"}:
                break
            if line == "/capture":
                print_analysis(assistant, assistant.capture())
                for question in assistant.suggestions():
                    print(f"  ? {question}")
                continue
            if line == "/visualize":
                chart = assistant.visualize()
                if chart is None:
                    print("Could not parse table data from the captured content.")
                else:
                    print(json.dumps(asdict(chart), indent=2, ensure_ascii=False))
                continue
            if line == "/clear":
                assistant.clear()
                print("Chat cleared successfully!")
                continue
            for reply in assistant.send(line):
                print(reply)
    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        assistant.close()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Capture assistant")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)
    parse_cmd = subparsers.add_parser("parse", help="Extract SQL and table data from a text file")
    parse_cmd.add_argument("path", type=Path)
    capture_cmd = subparsers.add_parser("capture", help="Capture the screen once and analyse it")
    capture_cmd.add_argument("--save-dir", type=Path, default=None, help="Also write the screenshot as PNG here")
    subparsers.add_parser("chat", help="Interactive chat session")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "parse":
        sys.exit(run_parse(args.path))
    if args.command == "capture":
        sys.exit(run_capture(args.save_dir))
    sys.exit(run_chat())


if __name__ == "__main__":
    main()
