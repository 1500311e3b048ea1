import math
from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from flask import Blueprint, current_app, jsonify, request
from pymongo.errors import PyMongoError

from .errors import InternalError, InvalidArgument, NotFound
from .security import ensure_owner, require_auth, resolve_identity

views = Blueprint('views', __name__)

POST_TYPES = {'Lost', 'Found'}
REQUIRED_FIELDS = ['title', 'description', 'location', 'category', 'thumbnail', 'postType']
UPDATABLE_FIELDS = ['title', 'description', 'location', 'category', 'thumbnail', 'date', 'postType']
TEXT_FIELDS = ['title', 'description', 'location', 'category', 'thumbnail']
DEFAULT_LIMIT = 6
MIN_LIMIT, MAX_LIMIT = 6, 9
# BSON stores skip as a signed 64-bit int
MAX_SKIP = 2 ** 63 - 1


def to_object_id(raw):
    try:
        return ObjectId(raw)
    except (InvalidId, TypeError):
        raise InvalidArgument("Invalid id")


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgument("Request body must be a JSON object")
    return data


def paginate(total, page, limit):
    """Pagination block for a listing of ``total`` documents."""
    total_pages = math.ceil(total / limit)
    return {
        'total': total,
        'page': page,
        'limit': limit,
        'totalPages': total_pages,
        'hasNextPage': page < total_pages,
        'hasPrevPage': page > 1,
    }


def _int_arg(name, default):
    raw = request.args.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidArgument(f"{name} must be an integer")


def _normalize(fields):
    """Trim string values and lowercase the category."""
    cleaned = {}
    for key, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        cleaned[key] = value
    if isinstance(cleaned.get('category'), str):
        cleaned['category'] = cleaned['category'].lower()
    return cleaned


def _check_text_fields(fields):
    not_text = [f for f in TEXT_FIELDS if f in fields and not isinstance(fields[f], str)]
    if not_text:
        raise InvalidArgument("Text fields must be strings", errors=not_text)


@views.route('/')
def home():
    return jsonify({'success': True, 'message': 'Lost and Found server is running'})


# -------------------------
# POSTS
# -------------------------
@views.route('/posts', methods=['GET'])
def list_posts():
    """Paginated listing, newest date first"""
    page = _int_arg('page', 1)
    limit = _int_arg('limit', DEFAULT_LIMIT)
    if page < 1:
        raise InvalidArgument("page must be at least 1")
    if limit < MIN_LIMIT or limit > MAX_LIMIT:
        raise InvalidArgument(f"limit must be between {MIN_LIMIT} and {MAX_LIMIT}")
    skip = (page - 1) * limit
    if skip > MAX_SKIP:
        raise InvalidArgument("page is too large")

    db = current_app.db
    total = db.posts.count_documents({})
    posts = list(db.posts.find().sort('date', -1).skip(skip).limit(limit))

    return jsonify({
        'success': True,
        'posts': posts,
        'pagination': paginate(total, page, limit),
    })


@views.route('/post/<post_id>', methods=['GET'])
@require_auth
def get_post(post_id):
    resolve_identity(query_required=True)
    # A missing post is returned as null rather than 404.
    post = current_app.db.posts.find_one({'_id': to_object_id(post_id)})
    return jsonify({'success': True, 'post': post})


@views.route('/my-posts', methods=['GET'])
@require_auth
def my_posts():
    email = resolve_identity()
    posts = list(current_app.db.posts.find({'email': email}).sort('createdAt', -1))
    return jsonify({'success': True, 'posts': posts})


@views.route('/posts', methods=['POST'])
@require_auth
def create_post():
    """Create a post owned by the authenticated user"""
    data = json_body()
    email = resolve_identity(data.get('email'))

    missing = [f for f in REQUIRED_FIELDS
               if data.get(f) is None or (isinstance(data.get(f), str) and not data.get(f).strip())]
    if missing:
        raise InvalidArgument("Missing required fields", errors=missing)
    _check_text_fields(data)
    if not isinstance(data['postType'], str) or data['postType'].strip() not in POST_TYPES:
        raise InvalidArgument("postType must be either 'Lost' or 'Found'")

    now = datetime.now(timezone.utc)
    post = _normalize({
        'title': data['title'],
        'description': data['description'],
        'location': data['location'],
        'category': data['category'],
        'thumbnail': data['thumbnail'],
        'postType': data['postType'],
        'date': data.get('date') or now.isoformat(),
        'name': data.get('name'),
    })
    post.update({'status': None, 'email': email, 'createdAt': now})

    try:
        result = current_app.db.posts.insert_one(post)
    except PyMongoError as e:
        current_app.logger.exception("Error creating post: %s", e)
        raise InternalError("Failed to create post")
    if not result.acknowledged:
        raise InternalError("Failed to create post")
    post['_id'] = result.inserted_id

    current_app.logger.info("Created post %s for %s", result.inserted_id, email)
    return jsonify({'success': True, 'message': 'Post created successfully', 'post': post}), 201


@views.route('/update-post/<post_id>', methods=['PATCH'])
@require_auth
def update_post(post_id):
    email = resolve_identity(query_required=True)
    oid = to_object_id(post_id)
    data = json_body()
    if not data:
        raise InvalidArgument("No update data provided")

    updates = _normalize({k: data[k] for k in UPDATABLE_FIELDS if k in data})
    if not updates:
        raise InvalidArgument("No valid updates provided")
    _check_text_fields(updates)
    if 'title' in updates and not updates['title']:
        raise InvalidArgument("Title cannot be empty")
    if 'description' in updates and not updates['description']:
        raise InvalidArgument("Description cannot be empty")
    if 'postType' in updates and (not isinstance(updates['postType'], str)
                                  or updates['postType'] not in POST_TYPES):
        raise InvalidArgument("postType must be either 'Lost' or 'Found'")

    db = current_app.db
    post = db.posts.find_one({'_id': oid})
    if not post:
        raise NotFound("Post not found")
    ensure_owner(post, email)
    if all(post.get(k) == v for k, v in updates.items()):
        raise InvalidArgument("No changes were made")

    result = db.posts.update_one({'_id': oid, 'email': email}, {'$set': updates})
    if result.matched_count == 0:
        raise NotFound("Post not found")
    if result.modified_count == 0:
        raise InvalidArgument("No changes were made")

    current_app.logger.info("Updated post %s fields %s", post_id, sorted(updates))
    return jsonify({
        'success': True,
        'message': 'Post updated successfully',
        'post': db.posts.find_one({'_id': oid}),
    })


@views.route('/posts/<post_id>', methods=['DELETE'])
@require_auth
def delete_post(post_id):
    email = resolve_identity(query_required=True)
    oid = to_object_id(post_id)
    db = current_app.db

    post = db.posts.find_one({'_id': oid})
    if not post:
        raise NotFound("Post not found")
    ensure_owner(post, email)

    result = db.posts.delete_one({'_id': oid, 'email': email})
    if result.deleted_count == 0:
        raise InternalError("Failed to delete post")

    current_app.logger.info("Deleted post %s", post_id)
    return jsonify({'success': True, 'message': 'Post deleted successfully'})


# -------------------------
# RECOVERY
# -------------------------
@views.route('/recovered-items', methods=['GET'])
@require_auth
def recovered_items():
    email = resolve_identity()
    query = {'$or': [{'recoveredBy.email': email}, {'originalPost.email': email}]}
    items = list(current_app.db.recoveredItems.find(query).sort('recoveryDate', -1))
    return jsonify({'success': True, 'items': items})


@views.route('/recover-item', methods=['POST'])
@require_auth
def recover_item():
    """Record a recovery and mark the post recovered"""
    data = json_body()
    recovered_by = data.get('recoveredBy') or {}
    if not isinstance(recovered_by, dict):
        raise InvalidArgument("recoveredBy must be an object")
    email = resolve_identity(recovered_by.get('email'), query_required=True)

    if not data.get('postId'):
        raise InvalidArgument("postId is required")
    oid = to_object_id(data['postId'])

    db = current_app.db
    post = db.posts.find_one({'_id': oid})
    if not post:
        raise NotFound("Post not found")
    if post.get('status') == 'recovered':
        raise InvalidArgument("Item has already been recovered")

    original_post = data.get('originalPost')
    if not isinstance(original_post, dict):
        original_post = {}
    record = {
        'postId': str(oid),
        'recoveredBy': dict(recovered_by, email=email),
        'originalPost': dict(original_post, email=post.get('email')),
        'recoveryDate': data.get('recoveryDate') or datetime.now(timezone.utc).isoformat(),
    }

    inserted = db.recoveredItems.insert_one(record)
    if not inserted.acknowledged:
        raise InternalError("Failed to recover item")

    try:
        result = db.posts.update_one(
            {'_id': oid, 'status': {'$ne': 'recovered'}},
            {'$set': {'status': 'recovered'}}
        )
        updated = result.acknowledged and result.modified_count == 1
    except PyMongoError as e:
        current_app.logger.exception("Error marking post %s recovered: %s", oid, e)
        updated = False

    if not updated:
        # Undo the record so it never points at a post that is not recovered.
        try:
            db.recoveredItems.delete_one({'_id': inserted.inserted_id})
        except PyMongoError as e:
            current_app.logger.exception(
                "Could not roll back recovery record %s: %s", inserted.inserted_id, e)
            raise InternalError("Failed to recover item")
        current_app.logger.warning("Rolled back recovery record %s", inserted.inserted_id)
        raise InternalError("Failed to recover item")

    current_app.logger.info("Post %s recovered by %s", oid, email)
    return jsonify({
        'success': True,
        'message': 'Item marked as recovered',
        'recoveryId': inserted.inserted_id,
    }), 201
