"""HTML pages: repository list, directory listing, editor, share admin, prompts."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from jinja2 import DictLoader, Environment, select_autoescape

from repodrive.files.paths import VirtualPath
from repodrive.shares.models import ShareRecord, now_ms

_TEMPLATES = {
    "base.html": """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{{ title }}</title>
<style>
body { font-family: "Segoe UI", sans-serif; background: #f3f9fd; margin: 0; padding: 20px; color: #333; }
a { text-decoration: none; color: #0078d4; }
.toolbar { display: flex; justify-content: space-between; align-items: center; margin-bottom: 16px; }
.items { list-style: none; padding: 0; }
.items li { background: #fff; margin: 4px 0; padding: 8px 12px; border-radius: 6px; display: flex; justify-content: space-between; }
table { width: 100%; background: #fff; border-collapse: collapse; }
td, th { padding: 8px; border-bottom: 1px solid #eee; text-align: left; }
.ok { color: green; } .bad { color: red; }
textarea { width: 100%; height: 80vh; font-family: Consolas, monospace; }
</style>
</head>
<body>
{% block body %}{% endblock %}
</body>
</html>""",
    "repos.html": """{% extends "base.html" %}
{% block body %}
<div class="toolbar"><strong>Repositories</strong><a href="/admin/shares{{ tq }}">Shares</a></div>
<ul class="items">
{% for repo in repos %}
  <li><a href="/{{ repo.name | urlencode }}{{ tq }}">{{ "&#128274;" | safe if repo.private else "&#127760;" | safe }} {{ repo.name }}</a>
      <span>{{ (repo.updated_at or "")[:10] }}</span></li>
{% endfor %}
</ul>
{% endblock %}""",
    "listing.html": """{% extends "base.html" %}
{% block body %}
<div class="toolbar">
  <div><a href="/{{ tq }}">Home</a> / <a href="/{{ vpath.repository | urlencode }}{{ tq }}">{{ vpath.repository }}</a>
  {% for label, href in vpath.breadcrumbs() %} / <a href="{{ href | urlencode }}{{ tq }}">{{ label }}</a>{% endfor %}</div>
  <a href="/admin/shares{{ tq }}">Shares</a>
</div>
<ul class="items">
  <li><a href="{{ vpath.parent() | urlencode }}{{ tq }}">..</a></li>
{% for item in entries %}
  {% set href = "/" ~ vpath.repository ~ "/" ~ item.path %}
  <li><a href="{{ href | urlencode }}{{ tq }}">{{ "&#128193;" | safe if item.type == "dir" else "&#128196;" | safe }} {{ item.name }}</a>
  {% if item.type != "dir" %}
    <span><a href="{{ href | urlencode }}{{ tq }}{{ "&" if tq else "?" }}edit=true">edit</a>
    <a href="#" onclick='share({{ (vpath.repository ~ "/" ~ item.path) | tojson }}); return false;'>share</a></span>
  {% endif %}</li>
{% endfor %}
</ul>
<div id="share-box" style="display:none">
  <input type="number" id="val" value="1" min="1">
  <select id="unit"><option value="day">day</option><option value="hour">hour</option><option value="week">week</option>
  <option value="month">month</option><option value="year">year</option><option value="forever">forever</option></select>
  <button onclick="createShare()">Create link</button> <input type="text" id="share-url" readonly size="50">
</div>
<script>
let sharePath = '';
function share(path) { sharePath = path; document.getElementById('share-box').style.display = 'block'; }
async function createShare() {
  const res = await fetch('/api/share/create{{ tq }}', {method: 'POST', headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({fullPath: sharePath, unit: document.getElementById('unit').value,
                          value: parseInt(document.getElementById('val').value)})});
  const data = await res.json();
  if (data.success) document.getElementById('share-url').value = data.url;
}
</script>
{% endblock %}""",
    "editor.html": """{% extends "base.html" %}
{% block body %}
<div class="toolbar"><strong>Editing {{ name }}</strong>
  <span><span id="msg"></span> <button onclick="history.back()">Back</button> <button onclick="save()">Save</button></span></div>
<textarea id="code" spellcheck="false"></textarea>
<script>
document.getElementById('code').value = {{ content | tojson }};
async function save() {
  const msg = document.getElementById('msg');
  const res = await fetch('/api/file/update{{ tq }}', {method: 'POST', headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({repo: {{ vpath.repository | tojson }}, path: {{ vpath.relative_path | tojson }},
                          sha: {{ sha | tojson }}, content: document.getElementById('code').value})});
  const d = await res.json();
  if (d.success) { msg.innerText = 'Saved'; setTimeout(() => location.reload(), 1000); }
  else { msg.innerText = d.message; }
}
</script>
{% endblock %}""",
    "shares.html": """{% extends "base.html" %}
{% block body %}
<div class="toolbar"><a href="/{{ tq }}">Back to files</a><strong>Share links</strong></div>
<table>
<thead><tr><th>File</th><th>Expires</th><th>Visits</th><th>Status</th><th></th></tr></thead>
<tbody>
{% for r in records %}
<tr id="row-{{ r.id }}">
  <td><a href="/s/{{ r.id }}" target="_blank">{{ r.file_name }}</a></td>
  <td>{{ r.expire_at | datetime if r.expire_at else "forever" }}</td>
  <td>{{ r.visits }}</td>
  <td>{% if r.is_resolvable(now) %}<span class="ok">valid</span>{% else %}<span class="bad">invalid</span>{% endif %}</td>
  <td><button onclick='toggle({{ r.id | tojson }}, {{ r.active | tojson }})'>{{ "Disable" if r.active else "Enable" }}</button>
      <button onclick='del({{ r.id | tojson }})'>Delete</button></td>
</tr>
{% else %}
<tr><td colspan="5">No share links yet</td></tr>
{% endfor %}
</tbody></table>
<script>
async function toggle(id, current) {
  await fetch('/api/share/toggle{{ tq }}', {method: 'POST', headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({id: id, active: !current})});
  location.reload();
}
async function del(id) {
  if (!confirm('Delete this link?')) return;
  await fetch('/api/share/delete{{ tq }}', {method: 'POST', headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({id: id})});
  document.getElementById('row-' + id).remove();
}
</script>
{% endblock %}""",
    "denied.html": """{% extends "base.html" %}
{% block body %}
<h3>Access denied</h3>
<p>Enter the access token to continue.</p>
<form method="get" action="{{ path }}">
  <input type="password" name="token" autofocus> <button type="submit">Open</button>
</form>
{% endblock %}""",
    "message.html": """{% extends "base.html" %}
{% block body %}
<h3>{{ title }}</h3>
<p>{{ message }}</p>
{% endblock %}""",
}


def _format_datetime(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


_env = Environment(loader=DictLoader(_TEMPLATES), autoescape=select_autoescape(default=True))
_env.filters["datetime"] = _format_datetime


def sort_entries(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Directories first, then by name."""
    return sorted(entries, key=lambda e: (e.get("type") != "dir", e.get("name") or ""))


def render_repositories(repos: List[Dict[str, Any]], tq: str = "") -> str:
    return _env.get_template("repos.html").render(title="Repositories", repos=repos, tq=tq)


def render_listing(vpath: VirtualPath, entries: List[Dict[str, Any]], tq: str = "") -> str:
    return _env.get_template("listing.html").render(
        title=vpath.full_path, vpath=vpath, entries=sort_entries(entries), tq=tq
    )


def render_editor(vpath: VirtualPath, name: str, sha: str, content: str, tq: str = "") -> str:
    return _env.get_template("editor.html").render(
        title=f"Edit - {name}", vpath=vpath, name=name, sha=sha, content=content, tq=tq
    )


def render_shares(records: List[ShareRecord], tq: str = "", now: Optional[int] = None) -> str:
    return _env.get_template("shares.html").render(
        title="Share links", records=records, tq=tq, now=now_ms() if now is None else now
    )


def render_denied(path: str) -> str:
    return _env.get_template("denied.html").render(title="Access denied", path=path)


def render_message(title: str, message: str) -> str:
    return _env.get_template("message.html").render(title=title, message=message)
