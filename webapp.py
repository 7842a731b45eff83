from __future__ import annotations
import logging
import os
import sys
from io import BytesIO
from pathlib import Path
from typing import Optional, Tuple
from flask import Flask, Response, jsonify, render_template_string, request, send_file
ROOT = Path(__file__).parent
sys.path.append(str(ROOT / "src"))
from eps_agent import __version__ as APP_VERSION  # type: ignore  # noqa: E402
from eps_agent.config import load_settings  # type: ignore  # noqa: E402
from eps_agent.confirmation import ConfirmationRejected, build_confirmation  # type: ignore  # noqa: E402
from eps_agent.document_loader import DocumentLoadError, load_uploaded_text  # type: ignore  # noqa: E402
from eps_agent.export import (  # type: ignore  # noqa: E402
    ExportError,
    build_docx_report,
    build_markdown_report,
    build_summary_text,
    export_filename,
)
from eps_agent.ollama_client import OllamaClient  # type: ignore  # noqa: E402
from eps_agent.orchestrator import ChatOrchestrator, Notification  # type: ignore  # noqa: E402
from eps_agent.session import InvalidTransition  # type: ignore  # noqa: E402
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
app = Flask(__name__)
app.config["ORCHESTRATOR"] = ChatOrchestrator(OllamaClient.from_settings(load_settings()))
def get_orchestrator() -> ChatOrchestrator:
    return app.config["ORCHESTRATOR"]
def _state_response(notification: Optional[Notification] = None, status: int = 200):
    body = {"state": get_orchestrator().state.to_dict()}
    if notification is not None:
        body["notification"] = notification.to_dict()
    return jsonify(body), status
def _error_response(message: str, status: int):
    body = {"error": message, "state": get_orchestrator().state.to_dict()}
    return jsonify(body), status
def _read_upload(file_storage) -> Tuple[Optional[str], Optional[str]]:
    if not file_storage or not file_storage.filename:
        return None, None
    raw_bytes = file_storage.read() or b""
    return file_storage.filename, load_uploaded_text(file_storage.filename, raw_bytes)
@app.errorhandler(InvalidTransition)
def handle_invalid_transition(exc: InvalidTransition):
    app.logger.warning("Rejected transition: %s", exc)
    return _error_response(str(exc), 409)
@app.route("/", methods=["GET"])
def index():
    client = get_orchestrator().client
    return render_template_string(
        TEMPLATE,
        app_version=APP_VERSION,
        model=getattr(client, "model", ""),
    )
@app.route("/api/state", methods=["GET"])
def api_state():
    return _state_response()
@app.route("/api/chat", methods=["POST"])
def api_chat():
    data = request.get_json(silent=True) or request.form
    message = (data.get("message") or "").strip()
    if not message:
        return _error_response("Message is empty.", 400)
    orchestrator = get_orchestrator()
    notification = orchestrator.send_message(message)
    if notification is None:
        return _error_response("EPS Agent is still working on the previous request.", 409)
    return _state_response(notification)
@app.route("/api/confirm", methods=["POST"])
def api_confirm():
    try:
        file_name, log_content = _read_upload(request.files.get("log_file"))
        test_case = request.form.get("test_case", "")
        if not test_case.strip():
            _, uploaded_case = _read_upload(request.files.get("test_case_file"))
            test_case = uploaded_case or test_case
        payload = build_confirmation(file_name, log_content, test_case)
    except (ConfirmationRejected, DocumentLoadError) as exc:
        app.logger.info("Confirmation rejected: %s", exc)
        return _error_response(str(exc), 400)
    notification = get_orchestrator().confirm_file(payload)
    if notification is None:
        return _error_response("EPS Agent is still working on the previous request.", 409)
    return _state_response(notification)
@app.route("/api/confirm/cancel", methods=["POST"])
def api_confirm_cancel():
    get_orchestrator().cancel_confirmation()
    return _state_response()
@app.route("/api/new-task", methods=["POST"])
def api_new_task():
    notification = get_orchestrator().start_new_task()
    return _state_response(notification)
@app.route("/api/navigate", methods=["POST"])
def api_navigate():
    data = request.get_json(silent=True) or request.form
    action = (data.get("action") or "").strip()
    notification = get_orchestrator().navigate(action)
    return _state_response(notification)
def _completed_export_args():
    state = get_orchestrator().state
    return state.completed_task, state.current_file, state.completion_timestamp
@app.route("/export/markdown", methods=["GET"])
def export_markdown():
    task, file_name, completed_at = _completed_export_args()
    try:
        content = build_markdown_report(task, file_name, completed_at)
    except ExportError as exc:
        return _error_response(str(exc), 404)
    return send_file(
        BytesIO(content.encode("utf-8")),
        mimetype="text/markdown",
        as_attachment=True,
        download_name=export_filename(file_name, ".md"),
    )
@app.route("/export/docx", methods=["GET"])
def export_docx():
    task, file_name, completed_at = _completed_export_args()
    try:
        docx_bytes = build_docx_report(task, file_name, completed_at)
    except ExportError as exc:
        return _error_response(str(exc), 404)
    return send_file(
        BytesIO(docx_bytes),
        mimetype="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        as_attachment=True,
        download_name=export_filename(file_name, ".docx"),
    )
@app.route("/export/summary", methods=["GET"])
def export_summary():
    task, file_name, completed_at = _completed_export_args()
    try:
        content = build_summary_text(task, file_name, completed_at)
    except ExportError as exc:
        return _error_response(str(exc), 404)
    return Response(content, mimetype="text/plain")
TEMPLATE = """
<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\">
  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">
  <title>EPS Agent</title>
  <style>
    :root {
      --bg: #f5f7fb;
      --card: #ffffff;
      --muted: #475569;
      --text: #0f172a;
      --accent: #2563eb;
      --border: rgba(15, 23, 42, 0.08);
      --shadow: 0 24px 70px rgba(15, 23, 42, 0.08);
      --pass: #15803d;
      --fail: #b91c1c;
    }
    * { box-sizing: border-box; }
    body { margin: 0; font-family: 'Inter', system-ui, -apple-system, sans-serif; background: var(--bg); color: var(--text); height: 100vh; display: flex; }
    h1, h2, h3 { margin: 0; }
    .sidebar { width: 240px; background: var(--card); border-right: 1px solid var(--border); padding: 20px 14px; display: flex; flex-direction: column; gap: 8px; }
    .badge { padding: 8px 12px; border-radius: 999px; background: rgba(37, 99, 235, 0.1); color: var(--accent); font-weight: 700; margin-bottom: 12px; text-align: center; }
    .nav-btn { text-align: left; border: none; background: transparent; padding: 10px 12px; border-radius: 10px; cursor: pointer; font-size: 14px; color: var(--text); }
    .nav-btn:hover { background: #eef2ff; }
    .status { margin-top: auto; font-size: 13px; color: var(--muted); }
    .main { flex: 1; display: flex; min-width: 0; }
    .chat { flex: 1; display: flex; flex-direction: column; min-width: 0; }
    .messages { flex: 1; overflow-y: auto; padding: 24px; display: flex; flex-direction: column; gap: 12px; }
    .msg { max-width: 75%; padding: 12px 14px; border-radius: 14px; white-space: pre-wrap; line-height: 1.45; box-shadow: 0 8px 24px rgba(15, 23, 42, 0.05); }
    .msg.user { align-self: flex-end; background: var(--accent); color: #fff; }
    .msg.assistant { align-self: flex-start; background: var(--card); border: 1px solid var(--border); }
    .msg .time { display: block; font-size: 11px; opacity: 0.7; margin-top: 6px; }
    .composer { display: flex; gap: 10px; padding: 16px 24px; border-top: 1px solid var(--border); background: var(--card); }
    textarea, .input { width: 100%; padding: 12px 14px; border-radius: 12px; border: 1px solid var(--border); background: #f8fafc; color: var(--text); font-size: 14px; font-family: inherit; }
    textarea { resize: vertical; min-height: 52px; }
    .btn { border: none; cursor: pointer; border-radius: 12px; padding: 10px 16px; font-weight: 700; font-size: 14px; }
    .btn-primary { background: var(--accent); color: #fff; }
    .btn-ghost { background: #eef2ff; color: #1e293b; border: 1px solid rgba(37, 99, 235, 0.2); }
    .btn:disabled { opacity: 0.5; cursor: not-allowed; }
    .panel { width: 380px; border-left: 1px solid var(--border); background: #f1f5f9; padding: 18px; overflow-y: auto; display: none; }
    .panel.visible { display: block; }
    .card { background: var(--card); border-radius: 14px; border: 1px solid var(--border); padding: 16px; margin-bottom: 12px; }
    .muted { color: var(--muted); font-size: 13px; }
    .result { font-size: 22px; font-weight: 800; }
    .result.PASS { color: var(--pass); }
    .result.FAIL { color: var(--fail); }
    .reasoning { white-space: pre-wrap; font-size: 13px; max-height: 360px; overflow-y: auto; }
    .actions { display: flex; flex-wrap: wrap; gap: 8px; margin-top: 12px; }
    .modal { position: fixed; inset: 0; background: rgba(15, 23, 42, 0.45); display: none; align-items: center; justify-content: center; z-index: 50; }
    .modal.visible { display: flex; }
    .modal .card { width: min(640px, 92vw); box-shadow: var(--shadow); }
    .field { display: grid; gap: 6px; margin-bottom: 14px; }
    .spinner { width: 18px; height: 18px; border: 3px solid rgba(37, 99, 235, 0.25); border-top-color: var(--accent); border-radius: 999px; animation: spin 0.8s linear infinite; display: inline-block; vertical-align: middle; }
    @keyframes spin { to { transform: rotate(360deg); } }
    .toasts { position: fixed; right: 20px; bottom: 20px; display: grid; gap: 8px; z-index: 60; }
    .toast { background: var(--card); border: 1px solid var(--border); border-radius: 12px; padding: 12px 14px; box-shadow: var(--shadow); min-width: 260px; }
    .toast.destructive { border-color: #ef4444; background: #fee2e2; color: #991b1b; }
  </style>
</head>
<body>
  <aside class=\"sidebar\">
    <div class=\"badge\">EPS Agent</div>
    <button class=\"nav-btn\" data-action=\"history\">History</button>
    <button class=\"nav-btn\" data-action=\"new-task\">Start a New Task</button>
    <button class=\"nav-btn\" data-action=\"request-feature\">Request a Feature</button>
    <button class=\"nav-btn\" data-action=\"privacy\">Privacy</button>
    <div class=\"status\" id=\"status\"></div>
    <div class=\"muted\">Model: {{ model }} &middot; v{{ app_version }}</div>
  </aside>
  <div class=\"main\">
    <section class=\"chat\">
      <div class=\"messages\" id=\"messages\"></div>
      <form class=\"composer\" id=\"composer\">
        <textarea id=\"message\" placeholder=\"Type your message... (Press Enter to send, Shift+Enter for new line)\"></textarea>
        <button class=\"btn btn-primary\" id=\"send\" type=\"submit\">Send</button>
      </form>
    </section>
    <section class=\"panel\" id=\"panel\"></section>
  </div>
  <div class=\"modal\" id=\"confirm-modal\">
    <form class=\"card\" id=\"confirm-form\">
      <h3>EPS Log Validation</h3>
      <p class=\"muted\">Upload the EPS log and paste the test case it should satisfy.</p>
      <div class=\"field\">
        <label for=\"log-file\">Upload EPS Log File</label>
        <input class=\"input\" type=\"file\" id=\"log-file\" name=\"log_file\" accept=\".log,.xml,.txt,.json,.pdf\">
      </div>
      <div class=\"field\">
        <label for=\"test-case\">Test Case</label>
        <textarea id=\"test-case\" name=\"test_case\" rows=\"8\" placeholder=\"Paste your test case here (e.g., JSON or plain text describing test steps)\"></textarea>
      </div>
      <div class=\"actions\">
        <button class=\"btn btn-primary\" type=\"submit\">Confirm &amp; Validate</button>
        <button class=\"btn btn-ghost\" type=\"button\" id=\"confirm-cancel\">Cancel</button>
      </div>
    </form>
  </div>
  <div class=\"toasts\" id=\"toasts\"></div>
  <script>
    const messagesEl = document.getElementById('messages');
    const panelEl = document.getElementById('panel');
    const statusEl = document.getElementById('status');
    const modalEl = document.getElementById('confirm-modal');
    const messageInput = document.getElementById('message');
    const sendBtn = document.getElementById('send');
    const testCaseInput = document.getElementById('test-case');
    let current = null;
    let pollTimer = null;
    function escapeHtml(str) {
      return String(str == null ? '' : str)
        .replace(/&/g, '&amp;').replace(/</g, '&lt;').replace(/>/g, '&gt;')
        .replace(/"/g, '&quot;').replace(/'/g, '&#39;');
    }
    function toast(n) {
      if (!n) return;
      const el = document.createElement('div');
      el.className = 'toast' + (n.variant === 'destructive' ? ' destructive' : '');
      el.innerHTML = '<strong>' + escapeHtml(n.title) + '</strong><div>' + escapeHtml(n.description) + '</div>';
      document.getElementById('toasts').appendChild(el);
      setTimeout(() => el.remove(), 4000);
    }
    function renderMessages(state) {
      messagesEl.innerHTML = state.messages.map(function (m) {
        const t = new Date(m.timestamp).toLocaleTimeString();
        return '<div class=\"msg ' + m.role + '\">' + escapeHtml(m.content) + '<span class=\"time\">' + t + '</span></div>';
      }).join('') + (state.is_loading ? '<div class=\"msg assistant\"><span class=\"spinner\"></span> EPS Agent is thinking…</div>' : '');
      messagesEl.scrollTop = messagesEl.scrollHeight;
    }
    function renderPanel(state) {
      if (state.mode === 'chatting') {
        panelEl.classList.remove('visible');
        panelEl.innerHTML = '';
        return;
      }
      panelEl.classList.add('visible');
      if (state.mode === 'task_mode') {
        panelEl.innerHTML = '<div class=\"card\"><h3>Tasks</h3><p class=\"muted\">' + escapeHtml(state.current_file) +
          ' &middot; ' + state.completed_count + '/' + state.total_count + ' completed</p>' +
          state.tasks.map(function (t) {
            return '<div>' + (t.completed ? '&#10003; ' : '<span class=\"spinner\"></span> ') + escapeHtml(t.description) + '</div>';
          }).join('') + '</div>';
        return;
      }
      const task = state.tasks[0] || {};
      panelEl.innerHTML = '<div class=\"card\"><h3>Validation complete</h3>' +
        '<p class=\"muted\">' + escapeHtml(state.current_file) + ' &middot; ' + new Date(state.completion_timestamp).toLocaleString() + '</p>' +
        '<div class=\"muted\">' + escapeHtml(task.description) + '</div>' +
        '<div class=\"result ' + escapeHtml(task.overall_result) + '\">' + escapeHtml(task.overall_result) + '</div></div>' +
        '<div class=\"card\"><h3>Reasoning and Evidence</h3><div class=\"reasoning\">' + escapeHtml(task.reasoning) + '</div>' +
        '<div class=\"actions\">' +
        '<a class=\"btn btn-ghost\" href=\"/export/markdown\">Export as Markdown</a>' +
        '<a class=\"btn btn-ghost\" href=\"/export/docx\">Export as Word</a>' +
        '<button class=\"btn btn-ghost\" type=\"button\" id=\"copy-summary\">Copy</button>' +
        '<button class=\"btn btn-primary\" type=\"button\" id=\"start-new\">Start New Task</button></div></div>';
      document.getElementById('copy-summary').addEventListener('click', copySummary);
      document.getElementById('start-new').addEventListener('click', function () { post('/api/new-task'); });
    }
    function render(state) {
      const wasOpen = current && current.show_confirmation;
      current = state;
      renderMessages(state);
      renderPanel(state);
      sendBtn.disabled = state.is_loading;
      statusEl.textContent = 'Mode: ' + state.mode.replace('_', ' ') + (state.is_loading ? ' (working…)' : '');
      modalEl.classList.toggle('visible', state.show_confirmation);
      if (state.show_confirmation && !wasOpen && state.draft_test_case) {
        testCaseInput.value = state.draft_test_case;
      }
    }
    async function refresh() {
      const resp = await fetch('/api/state');
      const data = await resp.json();
      render(data.state);
    }
    function startPolling() {
      if (!pollTimer) pollTimer = setInterval(refresh, 1000);
    }
    function stopPolling() {
      if (pollTimer) { clearInterval(pollTimer); pollTimer = null; }
    }
    async function post(url, body, isForm) {
      const opts = { method: 'POST' };
      if (isForm) {
        opts.body = body;
      } else {
        opts.headers = { 'Content-Type': 'application/json' };
        opts.body = JSON.stringify(body || {});
      }
      startPolling();
      try {
        const resp = await fetch(url, opts);
        const data = await resp.json();
        if (data.state) render(data.state);
        if (data.error) {
          if (resp.status === 400) alert(data.error);
          else toast({ title: 'Error', description: data.error, variant: 'destructive' });
        }
        toast(data.notification);
        return resp.ok;
      } catch (e) {
        toast({ title: 'Error', description: 'Failed to reach EPS Agent. Please check your connection.', variant: 'destructive' });
        return false;
      } finally {
        stopPolling();
      }
    }
    async function copySummary() {
      const resp = await fetch('/export/summary');
      const text = await resp.text();
      try {
        await navigator.clipboard.writeText(text);
        toast({ title: 'Copied', description: 'Validation results copied to clipboard.' });
      } catch (e) {
        toast({ title: 'Copy failed', description: 'Clipboard is not available.', variant: 'destructive' });
      }
    }
    document.getElementById('composer').addEventListener('submit', function (e) {
      e.preventDefault();
      const text = messageInput.value.trim();
      if (!text || (current && current.is_loading)) return;
      messageInput.value = '';
      post('/api/chat', { message: text });
    });
    messageInput.addEventListener('keydown', function (e) {
      if (e.key === 'Enter' && !e.shiftKey) {
        e.preventDefault();
        document.getElementById('composer').requestSubmit();
      }
    });
    document.querySelectorAll('.nav-btn').forEach(function (btn) {
      btn.addEventListener('click', function () { post('/api/navigate', { action: btn.dataset.action }); });
    });
    document.getElementById('confirm-cancel').addEventListener('click', function () {
      post('/api/confirm/cancel');
    });
    document.getElementById('confirm-form').addEventListener('submit', async function (e) {
      e.preventDefault();
      const fileInput = document.getElementById('log-file');
      if (!fileInput.files.length) { alert('Please select a valid EPS log file to process'); return; }
      if (!testCaseInput.value.trim()) { alert('Please paste a valid test case to validate against'); return; }
      const ok = await post('/api/confirm', new FormData(e.target), true);
      if (ok) { e.target.reset(); }
    });
    refresh();
  </script>
</body>
</html>
"""
def _find_open_port(host: str, preferred: int) -> int:
    import socket
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            s.bind((host, preferred))
            return preferred
        except OSError:
            pass
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind((host, 0))
        return s.getsockname()[1]
if __name__ == "__main__":
    import threading
    import time
    import webbrowser
    host = os.getenv("EPS_AGENT_HOST", "127.0.0.1")
    requested_port = int(os.getenv("EPS_AGENT_PORT", "8000"))
    port = _find_open_port(host, requested_port)
    def _open_browser() -> None:
        time.sleep(1)
        try:
            webbrowser.open(f"http://{host}:{port}")
        except Exception:
            pass
    threading.Thread(target=_open_browser, daemon=True).start()
    app.logger.info("EPS Agent UI starting on http://%s:%s", host, port)
    app.run(host=host, port=port, debug=False, threaded=True)
