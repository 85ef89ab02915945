"""Formatters for projects, tasks, milestones, comments, and attachments.

All accept the flat dicts returned by JoanClient.
"""

from joan_mcp.formatters._table import _listing, _trunc


def _project_line(p):
    line = f"- {p.get('name', '?')} (ID: {p.get('id', '')})"
    if p.get("status"):
        line += f" [{p['status']}]"
    if p.get("description"):
        line += f"\n  {_trunc(p['description'], 200)}"
    return line


def format_projects_list(projects):
    return _listing("project", projects, _project_line)


def _task_line(t):
    if t.get("task_number"):
        line = f"- #{t['task_number']} {t.get('title', '')} (ID: {t.get('id', '')})"
    else:
        line = f"- {t.get('title', '')} (ID: {t.get('id', '')})"
    if t.get("status"):
        line += f" [{t['status']}]"
    if t.get("priority") and t["priority"] != "none":
        line += f" ({t['priority']})"
    if t.get("due_date"):
        line += f" - Due: {t['due_date']}"
    return line


def format_tasks_list(tasks):
    return _listing("task", tasks, _task_line)


def _milestone_line(m):
    line = f"- {m.get('name', '?')} (ID: {m.get('id', '')})"
    if m.get("status"):
        line += f" [{m['status']}]"
    if m.get("target_date"):
        line += f" - Target: {m['target_date']}"
    if m.get("progress") is not None:
        line += f" - {m['progress']}% complete"
    return line


def format_milestones_list(milestones):
    return _listing("milestone", milestones, _milestone_line)


def _comment_line(c):
    author = c.get("author_name") or c.get("user_name") or c.get("user_id") or "unknown"
    when = c.get("created_at", "")
    return f"- [{when}] {author}: {_trunc(c.get('content', ''), 500)} (ID: {c.get('id', '')})"


def format_comments_list(comments):
    return _listing("comment", comments, _comment_line)


def _format_size(size):
    if not isinstance(size, (int, float)):
        return "?"
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _attachment_line(a):
    return (
        f"- {a.get('display_name') or a.get('filename', '?')} (ID: {a.get('id', '')})\n"
        f"  File: {a.get('filename', '')} | Size: {_format_size(a.get('size'))}"
        f" | Type: {a.get('category', '')}"
    )


def format_attachments_list(attachments):
    return _listing("attachment", attachments, _attachment_line)
