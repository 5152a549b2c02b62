from .constants import (
    EMBED_FIELD_VALUE_LIMIT,
    EMBED_TITLE_LIMIT,
    EVENT_MERGE_REQUEST,
    EVENT_PUSH,
    MERGE_REQUEST_OPENED_COLOR,
    MERGE_REQUEST_OTHER_COLOR,
    NO_DESCRIPTION_PLACEHOLDER,
    PUSH_COLOR,
)
from .utils import format_timestamp, parse_gitlab_timestamp, pick_first_nonempty, to_iso_utc, truncate


def _project_link(project):
    return f"[{project.get('name')}]({project.get('web_url', '')})"


def _apply_timestamp(embed, timestamp_str):
    parsed = parse_gitlab_timestamp(timestamp_str)
    if parsed is not None:
        embed['timestamp'] = to_iso_utc(parsed)
    return embed


def format_commit_field(commit):
    title = pick_first_nonempty(commit.get('title'), (commit.get('message') or '').split('\n', 1)[0]) or ''
    message = commit.get('message') or ''
    return {
        'name': f"**{truncate(title, EMBED_TITLE_LIMIT)}**",
        'value': f"[View commit]({commit.get('url', '')})\n**{truncate(message, EMBED_FIELD_VALUE_LIMIT)}**",
        'inline': False,
    }


def format_push_event(payload):
    project = payload['project']
    commits = payload['commits']

    details = {
        'title': 'Push Details',
        'description': f"A new push has been made to the **{payload.get('ref')}** branch.",
        'color': PUSH_COLOR,
        'fields': [
            {
                'name': 'User',
                'value': f"**{payload.get('user_name')}** ({payload.get('user_email')})",
                'inline': True,
            },
            {
                'name': 'Commits',
                'value': f"**{payload.get('total_commits_count', len(commits))}** new commits",
                'inline': True,
            },
            {
                'name': 'Project',
                'value': _project_link(project),
                'inline': True,
            },
        ],
    }

    if commits:
        first_timestamp = commits[0].get('timestamp')
        details['footer'] = {
            'text': f"Pushed at {format_timestamp(first_timestamp)}",
            'icon_url': payload.get('user_avatar') or '',
        }
        _apply_timestamp(details, first_timestamp)
        commit_summary = "Here's a summary of the commits:"
    else:
        # push sem commits (ex.: remoção de branch)
        details['footer'] = {'text': 'Pushed', 'icon_url': payload.get('user_avatar') or ''}
        commit_summary = 'No commits were included in this push.'

    return {
        'content': f"New push event in **{project.get('name')}**!",
        'embeds': [
            details,
            {
                'title': 'Commits',
                'description': commit_summary,
                'fields': [format_commit_field(commit) for commit in commits],
            },
        ],
    }


def merge_request_color(state):
    # Apenas 'opened' é verde; qualquer outro estado (closed, merged, locked...) é vermelho
    return MERGE_REQUEST_OPENED_COLOR if state == 'opened' else MERGE_REQUEST_OTHER_COLOR


def format_merge_request_event(payload):
    attributes = payload['object_attributes']
    project = payload['project']
    user = payload.get('user') or {}
    merge_state = attributes.get('state')
    updated_at = attributes.get('updated_at')

    description = pick_first_nonempty(attributes.get('description'), NO_DESCRIPTION_PLACEHOLDER)

    details = {
        'title': 'Merge Request Details',
        'description': (
            f"Merge request from **{attributes.get('source_branch')}** "
            f"to **{attributes.get('target_branch')}**."
        ),
        'color': merge_request_color(merge_state),
        'fields': [
            {
                'name': 'User',
                'value': f"**{user.get('name')}** ({user.get('username')})",
                'inline': True,
            },
            {
                'name': 'State',
                'value': f"**{merge_state}**",
                'inline': True,
            },
            {
                'name': 'Project',
                'value': _project_link(project),
                'inline': True,
            },
            {
                'name': 'Description',
                'value': truncate(description, EMBED_FIELD_VALUE_LIMIT),
                'inline': False,
            },
        ],
        'footer': {
            'text': f"Merge request {merge_state} at {format_timestamp(updated_at)}",
            'icon_url': user.get('avatar_url') or '',
        },
    }
    _apply_timestamp(details, updated_at)

    return {
        'content': (
            f"Merge request **{truncate(attributes.get('title'), EMBED_TITLE_LIMIT)}** "
            f"in **{project.get('name')}** has been **{merge_state}**!"
        ),
        'embeds': [details],
    }


EVENT_FORMATTERS = {
    EVENT_PUSH: format_push_event,
    EVENT_MERGE_REQUEST: format_merge_request_event,
}
