"""Prompt text for the chat-completions interpreter."""

from sheetflow.models import Issue, IssuePriority, IssueStatus

_STATUSES = ", ".join(f'"{s.value}"' for s in IssueStatus)
_PRIORITIES = ", ".join(f'"{p.value}"' for p in IssuePriority)

INTERPRET_SYSTEM = f"""\
You are an expert issue management assistant. You interpret user commands about
issues and answer with a single JSON object, nothing else.

Fields:
- kind: one of "create", "assign", "update-status", "update-priority",
  "update-title", "update-description", or "unknown".
- targetId: the issue identifier (like SF-012) named in the command. If the
  command names none, use the context issue id unless it is NO_CONTEXT_ID.
- title: for "create", the quoted title; for "update-title", the new title.
- description: the description text, if any.
- assignee: the person to assign; use "unassigned" to remove the assignee.
- status: one of {_STATUSES}.
- priority: one of {_PRIORITIES}.

Omit any field the command gives no information for.
"""

SUMMARIZE_SYSTEM = """\
You are a project management assistant summarizing open issues for a project
lead. Given the list of open issues, write a concise summary that highlights key
concerns and the overall project status. Answer with a JSON object of the form
{"summary": "..."}.
"""


def interpret_user_message(command: str, context_id: str) -> str:
    return f"Command: {command}\nContext issue id: {context_id}"


def render_issue_line(issue: Issue) -> str:
    assignee = issue.assignee or "Unassigned"
    notes = issue.description.general_notes or ""
    method = f" [{issue.description.method}]" if issue.description.method else ""
    return f"- {issue.id} ({issue.priority}, {issue.status}, {assignee}){method}: {issue.title}. {notes}".rstrip()


def summarize_user_message(issues: list[Issue]) -> str:
    return "Issues:\n" + "\n".join(render_issue_line(issue) for issue in issues)
