from .constants import EVENT_MERGE_REQUEST, EVENT_PUSH
from .errors import PayloadValidationError


def _check_object(payload, key, errors):
    value = payload.get(key)
    if not isinstance(value, dict):
        errors.append(f"'{key}' ausente ou não é um objeto")
        return None
    return value


def _check_string(container, key, prefix, errors, required=True):
    value = container.get(key)
    if value is None:
        if required:
            errors.append(f"'{prefix}{key}' ausente")
        return
    if not isinstance(value, str):
        errors.append(f"'{prefix}{key}' deve ser string")


def _validate_project(payload, errors):
    project = _check_object(payload, 'project', errors)
    if project is not None:
        _check_string(project, 'name', 'project.', errors)
        _check_string(project, 'namespace', 'project.', errors, required=False)
        _check_string(project, 'web_url', 'project.', errors, required=False)


def validate_push_payload(payload):
    errors = []
    _validate_project(payload, errors)

    commits = payload.get('commits')
    if not isinstance(commits, list):
        errors.append("'commits' ausente ou não é uma lista")
    else:
        for i, commit in enumerate(commits):
            if not isinstance(commit, dict):
                errors.append(f"'commits[{i}]' não é um objeto")
                continue
            _check_string(commit, 'title', f'commits[{i}].', errors, required=False)
            _check_string(commit, 'message', f'commits[{i}].', errors, required=False)
            _check_string(commit, 'url', f'commits[{i}].', errors, required=False)
    return errors


def validate_merge_request_payload(payload):
    errors = []
    _validate_project(payload, errors)

    attributes = _check_object(payload, 'object_attributes', errors)
    if attributes is not None:
        _check_string(attributes, 'title', 'object_attributes.', errors)
        _check_string(attributes, 'state', 'object_attributes.', errors)
        _check_string(attributes, 'description', 'object_attributes.', errors, required=False)

    user = _check_object(payload, 'user', errors)
    if user is not None:
        _check_string(user, 'name', 'user.', errors)
        _check_string(user, 'username', 'user.', errors, required=False)
    return errors


VALIDATORS = {
    EVENT_PUSH: validate_push_payload,
    EVENT_MERGE_REQUEST: validate_merge_request_payload,
}


def validate_payload(payload):
    """Levanta PayloadValidationError se o payload não tiver o formato esperado para o object_kind."""
    object_kind = payload.get('object_kind')
    validator = VALIDATORS.get(object_kind)
    if validator is None:
        raise PayloadValidationError(str(object_kind), [f"object_kind '{object_kind}' não suportado"])
    errors = validator(payload)
    if errors:
        raise PayloadValidationError(object_kind, errors)
