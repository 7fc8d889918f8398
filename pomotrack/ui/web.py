"""Web-based dashboard for PomoTrack.

A lightweight Flask app serving a single-page dashboard and a JSON API for:
- Pomodoro timer state and commands
- Pomodoro settings
- Manual time tracking
- Tasks and projects (listing, creation, status changes) and the session log
- Daily/weekly summaries and productivity insights
"""

import logging
import threading
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Optional

from flask import Flask, jsonify, render_template_string, request

from pomotrack.core.config import settings_to_dict
from pomotrack.core.models import (
    DailySummary,
    ManualSessionState,
    Priority,
    Project,
    Task,
    TaskStatus,
    TaskTimeSummary,
    TimerSnapshot,
    TimeSession,
)
from pomotrack.reporting.formatter import TextFormatter
from pomotrack.reporting.summary import DELETED_TASK_LABEL, UNASSIGNED_LABEL

logger = logging.getLogger(__name__)

# Will be set by start_dashboard()
_app_ref = None  # type: Optional[Any]  # PomoTrackApp

DELETED_PROJECT_LABEL = "(deleted project)"

_TIMER_COMMANDS = ("start", "pause", "stop", "reset", "skip")


def create_flask_app() -> Flask:
    app = Flask(__name__)
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 0

    @app.route("/")
    def index():
        return render_template_string(DASHBOARD_HTML)

    # -- Timer -----------------------------------------------------------

    @app.route("/api/timer")
    def api_timer():
        if _app_ref is None or _app_ref._timer is None:
            return jsonify({"error": "not initialized"}), 500
        return jsonify(_timer_response(_app_ref._timer.snapshot()))

    @app.route("/api/timer/<command>", methods=["POST"])
    def api_timer_command(command):
        if _app_ref is None or _app_ref._timer is None:
            return jsonify({"error": "not ready"}), 500
        if command not in _TIMER_COMMANDS:
            return jsonify({"error": f"unknown command {command!r}"}), 404
        result = getattr(_app_ref._timer, command)()
        body = _timer_response(_app_ref._timer.snapshot())
        if isinstance(result, bool):
            body["accepted"] = result
        elif isinstance(result, list):
            body["events"] = result
        return jsonify(body)

    @app.route("/api/timer/task", methods=["POST"])
    def api_timer_task():
        if _app_ref is None or _app_ref._timer is None:
            return jsonify({"error": "not ready"}), 500
        data = request.get_json(silent=True) or {}
        task_id = data.get("task_id")
        if not task_id:
            _app_ref._timer.clear_task()
            return jsonify(_timer_response(_app_ref._timer.snapshot()))
        task = _app_ref._store.get_task(task_id)
        if task is None:
            return jsonify({"error": "task not found"}), 404
        _app_ref._timer.bind_task(task.id, task.title)
        body = _timer_response(_app_ref._timer.snapshot())
        if data.get("auto_start"):
            body["auto_started"] = _app_ref._timer.request_auto_start()
            body.update(_timer_response(_app_ref._timer.snapshot()))
        return jsonify(body)

    # -- Settings --------------------------------------------------------

    @app.route("/api/settings")
    def api_get_settings():
        if _app_ref is None or _app_ref._timer is None:
            return jsonify({"error": "not ready"}), 500
        return jsonify(settings_to_dict(_app_ref._timer.settings))

    @app.route("/api/settings", methods=["POST"])
    def api_update_settings():
        if _app_ref is None or _app_ref._timer is None:
            return jsonify({"error": "not ready"}), 500
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "invalid"}), 400
        settings = _app_ref.update_settings(data)
        return jsonify(settings_to_dict(settings))

    # -- Manual tracking -------------------------------------------------

    @app.route("/api/manual")
    def api_manual_state():
        if _app_ref is None or _app_ref._manual_tracker is None:
            return jsonify({"error": "not ready"}), 500
        tracker = _app_ref._manual_tracker
        return jsonify({
            "session": _manual_response(tracker.state()),
            "elapsed_minutes": tracker.elapsed_minutes(),
        })

    @app.route("/api/manual/start", methods=["POST"])
    def api_manual_start():
        if _app_ref is None or _app_ref._manual_tracker is None:
            return jsonify({"error": "not ready"}), 500
        data = request.get_json(silent=True) or {}
        task_id = data.get("task_id")
        if not task_id:
            return jsonify({"error": "task_id required"}), 400
        session = _app_ref._manual_tracker.start(task_id)
        if session is None:
            return jsonify({"error": "cannot start manual session"}), 409
        return jsonify({"session": _manual_response(_app_ref._manual_tracker.state())})

    @app.route("/api/manual/<command>", methods=["POST"])
    def api_manual_command(command):
        if _app_ref is None or _app_ref._manual_tracker is None:
            return jsonify({"error": "not ready"}), 500
        tracker = _app_ref._manual_tracker
        if command == "stop":
            data = request.get_json(silent=True) or {}
            session = tracker.stop(add_to_task=bool(data.get("add_to_task")))
            if session is None:
                return jsonify({"error": "no active session"}), 409
            return jsonify({"session": _session_response(session)})
        if command in ("pause", "resume"):
            accepted = getattr(tracker, command)()
            return jsonify({"accepted": accepted, "session": _manual_response(tracker.state())})
        return jsonify({"error": f"unknown command {command!r}"}), 404

    # -- Tasks, projects, sessions ---------------------------------------

    @app.route("/api/tasks")
    def api_tasks():
        if not _app_ref or not _app_ref._store:
            return jsonify([])
        include_completed = request.args.get("include_completed", "1") != "0"
        return jsonify([_task_response(t) for t in _app_ref._store.list_tasks(include_completed)])

    @app.route("/api/tasks", methods=["POST"])
    def api_create_task():
        if _app_ref is None or _app_ref._store is None:
            return jsonify({"error": "not ready"}), 500
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "invalid"}), 400
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            return jsonify({"error": "title required"}), 400
        try:
            priority = Priority(data.get("priority") or Priority.MEDIUM.value)
        except ValueError:
            return jsonify({"error": "invalid priority"}), 400
        estimate = data.get("estimated_pomodoros")
        if estimate is not None and (
            isinstance(estimate, bool) or not isinstance(estimate, int) or estimate < 1
        ):
            return jsonify({"error": "estimated_pomodoros must be a positive integer"}), 400
        project_id = data.get("project_id") or None
        if project_id and _app_ref._store.get_project(project_id) is None:
            return jsonify({"error": "project not found"}), 404

        task = Task(
            id=str(uuid.uuid4()),
            title=title.strip(),
            project_id=project_id,
            priority=priority,
            estimated_pomodoros=estimate,
            description=str(data.get("description") or ""),
            assigned_date=date.today(),
        )
        _app_ref._store.add_task(task)
        logger.info("Created task %s (%s)", task.id, task.title)
        return jsonify(_task_response(task)), 201

    @app.route("/api/tasks/<task_id>/status", methods=["POST"])
    def api_task_status(task_id):
        if _app_ref is None or _app_ref._store is None:
            return jsonify({"error": "not ready"}), 500
        data = request.get_json(silent=True) or {}
        try:
            status = TaskStatus(data.get("status"))
        except ValueError:
            return jsonify({"error": "invalid status"}), 400
        if not _app_ref._store.set_task_status(task_id, status):
            return jsonify({"error": "task not found"}), 404
        return jsonify(_task_response(_app_ref._store.get_task(task_id)))

    @app.route("/api/projects")
    def api_projects():
        if not _app_ref or not _app_ref._store:
            return jsonify([])
        return jsonify([_project_response(p) for p in _app_ref._store.list_projects()])

    @app.route("/api/projects", methods=["POST"])
    def api_create_project():
        if _app_ref is None or _app_ref._store is None:
            return jsonify({"error": "not ready"}), 500
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "invalid"}), 400
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            return jsonify({"error": "name required"}), 400
        project = Project(
            id=str(uuid.uuid4()),
            name=name.strip(),
            description=str(data.get("description") or ""),
            client=str(data.get("client") or ""),
        )
        _app_ref._store.add_project(project)
        logger.info("Created project %s (%s)", project.id, project.name)
        return jsonify(_project_response(project)), 201

    @app.route("/api/sessions")
    def api_sessions():
        if not _app_ref or not _app_ref._store:
            return jsonify([])
        date_str = request.args.get("date")
        if date_str:
            try:
                target = date.fromisoformat(date_str)
            except ValueError:
                return jsonify({"error": "invalid date"}), 400
            start = datetime(target.year, target.month, target.day)
            sessions = _app_ref._store.get_sessions(start, start + timedelta(days=1))
        else:
            sessions = _app_ref._store.get_sessions()
        return jsonify([_session_response(s) for s in sessions])

    # -- Summaries -------------------------------------------------------

    @app.route("/api/summary/daily")
    def api_daily():
        if not _app_ref or not _app_ref._stats:
            return jsonify({"error": "not ready"}), 500
        date_str = request.args.get("date")
        try:
            target = date.fromisoformat(date_str) if date_str else date.today()
        except ValueError:
            return jsonify({"error": "invalid date"}), 400
        return jsonify(_daily_response(_app_ref._stats.daily_summary(target)))

    @app.route("/api/summary/weekly")
    def api_weekly():
        if not _app_ref or not _app_ref._stats:
            return jsonify({"error": "not ready"}), 500
        start_str = request.args.get("start")
        try:
            start = date.fromisoformat(start_str) if start_str else (
                date.today() - timedelta(days=date.today().weekday())
            )
        except ValueError:
            return jsonify({"error": "invalid date"}), 400
        s = _app_ref._stats.weekly_summary(start)
        return jsonify({
            "start": str(s.start_date),
            "end": str(s.end_date),
            "days": [_daily_response(d) for d in s.daily_breakdowns],
            "tasks": [_task_summary_response(t) for t in s.tasks],
            "total_minutes": s.total_minutes,
            "total_time": TextFormatter.format_minutes(s.total_minutes),
            "pomodoros": s.pomodoros,
            "goal_minutes": s.goal_minutes,
            "goal_progress": s.goal_progress,
        })

    @app.route("/api/insights")
    def api_insights():
        if not _app_ref or not _app_ref._stats:
            return jsonify({"error": "not ready"}), 500
        c = _app_ref._stats.weekly_comparison()
        return jsonify({
            "this_week": vars(c.this_week),
            "last_week": vars(c.last_week),
            "trends": {
                "tasks": c.task_trend,
                "completed_tasks": c.completion_trend,
                "minutes": c.time_trend,
                "pomodoros": c.pomodoro_trend,
            },
            "completion_rate": c.completion_rate,
            "insights": [vars(i) for i in c.insights],
        })

    return app


def start_dashboard(app_ref, port: int = 5556) -> threading.Thread:
    """Start the Flask dashboard in a daemon thread."""
    global _app_ref
    _app_ref = app_ref
    flask_app = create_flask_app()

    def _run():
        flask_app.run(host="127.0.0.1", port=port, debug=False, use_reloader=False)

    t = threading.Thread(target=_run, daemon=True, name="pomotrack-web")
    t.start()
    logger.info("Dashboard started at http://127.0.0.1:%d", port)
    return t


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def _timer_response(snap: TimerSnapshot) -> dict[str, Any]:
    return {
        "phase": snap.phase.value,
        "remaining": snap.remaining_display,
        "remaining_seconds": snap.remaining_seconds,
        "running": snap.running,
        "completed_cycles": snap.completed_cycles,
        "progress": snap.progress,
        "active_task_id": snap.active_task_id,
    }


def _manual_response(state: Optional[ManualSessionState]) -> Optional[dict[str, Any]]:
    if state is None:
        return None
    return {
        "id": state.session_id,
        "task_id": state.task_id,
        "project_id": state.project_id,
        "start_time": state.start_time.isoformat(),
        "running": state.running,
        "active_seconds": int(state.active_seconds),
    }


def _task_response(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "project_id": task.project_id,
        "priority": task.priority.value,
        "status": task.status.value,
        "completed": task.completed,
        "pomodoro_count": task.pomodoro_count,
        "total_minutes": task.total_minutes,
        "estimated_pomodoros": task.estimated_pomodoros,
    }


def _project_response(project: Project) -> dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "client": project.client,
        "active": project.active,
    }


def _session_response(session: TimeSession) -> dict[str, Any]:
    """Serialise a session, labelling task/project references that no longer resolve."""
    task = _app_ref._store.get_task(session.task_id) if _app_ref else None
    project = _app_ref._store.get_project(session.project_id) if _app_ref else None
    return {
        "id": session.id,
        "task_id": session.task_id,
        "task_title": task.title if task else (
            DELETED_TASK_LABEL if session.task_id else UNASSIGNED_LABEL
        ),
        "project_id": session.project_id,
        "project_name": project.name if project else (
            DELETED_PROJECT_LABEL if session.project_id else ""
        ),
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "duration": session.duration,
        "type": session.type.value,
    }


def _task_summary_response(t: TaskTimeSummary) -> dict[str, Any]:
    return {
        "task_id": t.task_id,
        "title": t.title,
        "project_name": t.project_name,
        "total_minutes": t.total_minutes,
        "time_str": TextFormatter.format_minutes(t.total_minutes),
        "pomodoros": t.pomodoros,
        "sessions": t.session_count,
    }


def _daily_response(s: DailySummary) -> dict[str, Any]:
    return {
        "date": str(s.date),
        "tasks": [_task_summary_response(t) for t in s.tasks],
        "total_minutes": s.total_minutes,
        "total_time": TextFormatter.format_minutes(s.total_minutes),
        "pomodoros": s.pomodoros,
    }


DASHBOARD_HTML = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>PomoTrack Dashboard</title>
<style>
  :root { --bg: #f8f9fa; --card: #fff; --accent: #e8724a; --text: #333;
          --muted: #888; --border: #e5e5e5; }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 720px; margin: 0 auto; padding: 20px; }
  h1 { font-size: 1.4em; font-weight: 600; margin-bottom: 20px; }
  .card { background: var(--card); border-radius: 10px; padding: 20px; margin-bottom: 16px;
          box-shadow: 0 1px 3px rgba(0,0,0,0.06); }
  .card h2 { font-weight: 600; margin-bottom: 12px; color: var(--muted); text-transform: uppercase;
             letter-spacing: 0.5px; font-size: 0.75em; }
  #timer-time { font-size: 3em; font-weight: 300; font-variant-numeric: tabular-nums; }
  .bar { height: 6px; background: var(--border); border-radius: 3px; margin: 8px 0 16px; }
  .bar > div { height: 100%; background: var(--accent); border-radius: 3px; }
  button { cursor: pointer; padding: 6px 14px; border-radius: 6px; border: 1px solid var(--border);
           background: var(--card); margin-right: 4px; }
  input { padding: 6px; border-radius: 6px; border: 1px solid var(--border); margin: 0 4px 8px 0; }
  select { padding: 6px; border-radius: 6px; border: 1px solid var(--border); margin-bottom: 12px; }
  table { width: 100%; border-collapse: collapse; font-size: 0.9em; }
  td { padding: 4px 0; border-bottom: 1px solid var(--border); }
</style>
</head>
<body>
<div class="container">
  <h1>PomoTrack</h1>
  <div class="card">
    <h2>Pomodoro</h2>
    <select id="task-select" onchange="bindTask()"></select>
    <div id="timer-label" style="color:var(--muted)">-</div>
    <div id="timer-time">--:--</div>
    <div class="bar"><div id="timer-bar" style="width:0%"></div></div>
    <button onclick="cmd('start')">Start</button>
    <button onclick="cmd('pause')">Pause</button>
    <button onclick="cmd('reset')">Reset</button>
    <button onclick="cmd('skip')">Skip</button>
    <button onclick="cmd('stop')">Stop</button>
    <button onclick="completeTask()">Done</button>
  </div>
  <div class="card">
    <h2>New task</h2>
    <form id="task-form" onsubmit="createTask(event)">
      <input id="task-title" placeholder="Title" required>
      <select id="task-project"></select>
      <select id="task-priority">
        <option value="high">High</option>
        <option value="medium" selected>Medium</option>
        <option value="low">Low</option>
      </select>
      <input id="task-estimate" type="number" min="1" placeholder="Est. pomodoros">
      <button type="submit">Add task</button>
    </form>
    <form id="project-form" onsubmit="createProject(event)">
      <input id="project-name" placeholder="Project name" required>
      <input id="project-client" placeholder="Client">
      <button type="submit">Add project</button>
    </form>
    <div id="form-error" style="color:var(--accent)"></div>
  </div>
  <div class="card">
    <h2>Today</h2>
    <div id="today-total">-</div>
    <table id="today-table"></table>
  </div>
</div>
<script>
async function fetchJSON(url, opts) { return (await fetch(url, opts)).json(); }
function post(url, body) {
  return fetchJSON(url, {method: 'POST', headers: {'Content-Type': 'application/json'},
                         body: JSON.stringify(body || {})});
}
function el(tag, text, attrs) {
  const node = document.createElement(tag);
  node.textContent = text;
  Object.assign(node, attrs || {});
  return node;
}
const LABELS = {work: 'Pomodoro', shortBreak: 'Short break', longBreak: 'Long break'};
function render(t) {
  document.getElementById('timer-time').textContent = t.remaining;
  document.getElementById('timer-label').textContent =
    LABELS[t.phase] + ' · ' + t.completed_cycles + ' completed' + (t.running ? '' : ' · paused');
  document.getElementById('timer-bar').style.width = Math.round(t.progress * 100) + '%';
}
async function cmd(name) { render(await post('/api/timer/' + name)); refresh(); }
async function bindTask() {
  render(await post('/api/timer/task', {task_id: document.getElementById('task-select').value}));
}
async function completeTask() {
  const id = document.getElementById('task-select').value;
  if (!id) return;
  await post('/api/tasks/' + encodeURIComponent(id) + '/status', {status: 'completed'});
  await cmd('stop');
  loadTasks();
}
async function loadTasks() {
  const tasks = await fetchJSON('/api/tasks?include_completed=0');
  document.getElementById('task-select').replaceChildren(
    el('option', 'Select a task', {value: ''}),
    ...tasks.map(t => el('option', t.title + ' (' + t.pomodoro_count + ')', {value: t.id})));
}
async function loadProjects() {
  const projects = await fetchJSON('/api/projects');
  document.getElementById('task-project').replaceChildren(
    el('option', 'No project', {value: ''}),
    ...projects.map(p => el('option', p.name, {value: p.id})));
}
function showError(resp) { document.getElementById('form-error').textContent = resp.error || ''; }
async function createTask(ev) {
  ev.preventDefault();
  const estimate = document.getElementById('task-estimate').value;
  const resp = await post('/api/tasks', {
    title: document.getElementById('task-title').value,
    project_id: document.getElementById('task-project').value,
    priority: document.getElementById('task-priority').value,
    estimated_pomodoros: estimate ? parseInt(estimate, 10) : null,
  });
  showError(resp);
  if (!resp.error) { ev.target.reset(); loadTasks(); }
}
async function createProject(ev) {
  ev.preventDefault();
  const resp = await post('/api/projects', {
    name: document.getElementById('project-name').value,
    client: document.getElementById('project-client').value,
  });
  showError(resp);
  if (!resp.error) { ev.target.reset(); loadProjects(); }
}
async function refresh() {
  render(await fetchJSON('/api/timer'));
  const d = await fetchJSON('/api/summary/daily');
  document.getElementById('today-total').textContent = d.total_time + ' · ' + d.pomodoros + ' pomodoros';
  document.getElementById('today-table').replaceChildren(...d.tasks.map(t => {
    const tr = el('tr', '');
    tr.append(el('td', t.title), el('td', t.time_str), el('td', String(t.pomodoros)));
    return tr;
  }));
}
loadTasks(); loadProjects(); refresh();
setInterval(async () => render(await fetchJSON('/api/timer')), 1000);
</script>
</body>
</html>"""
