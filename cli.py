from __future__ import annotations
import argparse
import sys
from pathlib import Path
import logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
ROOT = Path(__file__).parent
sys.path.append(str(ROOT / "src"))
from eps_agent import ChatOrchestrator, OllamaClient, load_settings  # type: ignore  # noqa: E402
from eps_agent.confirmation import ConfirmationRejected, build_confirmation  # type: ignore  # noqa: E402
from eps_agent.document_loader import DocumentLoadError, load_text_document  # type: ignore  # noqa: E402
from eps_agent.export import build_docx_report, build_markdown_report  # type: ignore  # noqa: E402
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate an EPS log against a test case with a local model")
    parser.add_argument("log", type=Path, help="Path to the EPS log file")
    parser.add_argument("test_case", type=Path, help="Path to the test case file")
    parser.add_argument("--output", "-o", type=Path, help="Optional path to write the Markdown report")
    parser.add_argument("--docx-output", type=Path, help="Optional path to write the report as a Word document")
    parser.add_argument("--prompt-only", action="store_true", help="Print the validation prompt instead of calling the model")
    parser.add_argument("--model", help="Model name (default from settings)")
    parser.add_argument("--base-url", help="Model service base URL (default from settings)")
    parser.add_argument("--max-chars", type=int, help="Per-input character limit before truncation")
    return parser.parse_args(argv)
def build_client(args: argparse.Namespace) -> OllamaClient:
    client = OllamaClient.from_settings(load_settings())
    if args.model is not None:
        client.model = args.model
    if args.base_url is not None:
        client.base_url = args.base_url
    if args.max_chars is not None:
        client.max_content_chars = args.max_chars
    return client
def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        payload = build_confirmation(
            args.log.name,
            load_text_document(args.log),
            load_text_document(args.test_case),
        )
    except (ConfirmationRejected, DocumentLoadError, OSError) as exc:
        raise SystemExit(str(exc))
    client = build_client(args)
    if args.prompt_only:
        print(client.build_prompt("", payload.log_content, payload.test_case_content))
        return
    orchestrator = ChatOrchestrator(client)
    notification = orchestrator.confirm_file(payload)
    state = orchestrator.state
    report = build_markdown_report(state.completed_task, state.current_file, state.completion_timestamp)
    if args.output:
        args.output.write_text(report, encoding="utf-8")
    if args.docx_output:
        args.docx_output.write_bytes(
            build_docx_report(state.completed_task, state.current_file, state.completion_timestamp)
        )
    if not args.output and not args.docx_output:
        print(report)
    if notification is not None and notification.destructive:
        raise SystemExit(1)
if __name__ == "__main__":
    main()
