from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError as SchemaError

from .errors import ValidationError
from .extensions import limiter
from .gate import auth_required, current_identity
from .schemas import EntryCreate, EntryUpdate, LoginRequest, RegisterRequest

users = Blueprint('users', __name__, url_prefix='/api/user')
passwords = Blueprint('passwords', __name__, url_prefix='/api/passwords')


def _services():
    return current_app.extensions['credvault']


def _auth_limit():
    return current_app.config['RATELIMIT_AUTH']


def _parse(schema):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    try:
        return schema.model_validate(data)
    except SchemaError as exc:
        error = exc.errors()[0]
        field = '.'.join(str(part) for part in error['loc'])
        raise ValidationError(f'{field}: {error["msg"]}' if field else error['msg']) from None


@users.route('/register', methods=['POST'])
@limiter.limit(_auth_limit)
def register():
    result = _services().accounts.register(_parse(RegisterRequest))
    return jsonify(result.model_dump(mode='json')), 201


@users.route('/login', methods=['POST'])
@limiter.limit(_auth_limit)
def login():
    result = _services().accounts.login(_parse(LoginRequest))
    return jsonify(result.model_dump(mode='json'))


@users.route('/profile', methods=['GET'])
@auth_required
def get_profile():
    user = _services().accounts.get_profile(current_identity())
    return jsonify(user.model_dump(mode='json'))


@passwords.route('', methods=['POST'])
@auth_required
def create_password():
    entry = _services().vault.create_entry(current_identity(), _parse(EntryCreate))
    return jsonify(entry.model_dump(mode='json')), 201


@passwords.route('', methods=['GET'])
@auth_required
def list_passwords():
    entries = _services().vault.list_entries(current_identity())
    return jsonify([entry.model_dump(mode='json') for entry in entries])


@passwords.route('/<entry_id>', methods=['GET'])
@auth_required
def get_password(entry_id):
    entry = _services().vault.get_entry(current_identity(), entry_id)
    return jsonify(entry.model_dump(mode='json'))


@passwords.route('/<entry_id>', methods=['PUT'])
@auth_required
def update_password(entry_id):
    entry = _services().vault.update_entry(current_identity(), entry_id, _parse(EntryUpdate))
    return jsonify(entry.model_dump(mode='json'))


@passwords.route('/<entry_id>', methods=['DELETE'])
@auth_required
def delete_password(entry_id):
    _services().vault.delete_entry(current_identity(), entry_id)
    return jsonify({'status': 'deleted'})
