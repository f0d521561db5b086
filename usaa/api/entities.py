"""
Entity tracking API endpoints.

One blueprint per entity kind, built by `create_entity_blueprint`:
- GET    /<plural>                     - List online entities
- GET    /<plural>/<cid>               - Get entity by CID
- GET    /<plural>/callsign/<callsign> - Get online entity by callsign
- POST   /<plural>/online              - Set entity online
- POST   /<plural>/offline             - Set entity offline
- DELETE /<plural>/<cid>               - Remove entity from tracking

Plus the legacy controller alias:
- GET    /callsign/<callsign>          - Get controller by callsign
"""

import logging

from flask import Blueprint, current_app, request

from usaa.api.responses import error_response, success_response
from usaa.errors import ValidationError
from usaa.tracking import CONTROLLER, EntityIndex, EntityKind

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'usaa_indexes'


def get_index(kind: EntityKind) -> EntityIndex:
    """The EntityIndex registered on the current app for kind."""
    return current_app.extensions[EXTENSION_KEY][kind.name]


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError('JSON body required')
    return body


def create_entity_blueprint(kind: EntityKind) -> Blueprint:
    """Build the routes for one entity kind."""
    bp = Blueprint(kind.plural, __name__, url_prefix=f'/{kind.plural}')

    @bp.route('', methods=['GET'])
    def list_online():
        records = get_index(kind).list_online()
        return success_response(
            [r.to_dict() for r in records],
            count=len(records),
        )

    @bp.route('/<cid>', methods=['GET'])
    def get_by_cid(cid: str):
        record = get_index(kind).lookup_by_id(cid)
        if record is None:
            return error_response(f'{kind.label} not found', 404)
        return success_response(record.to_dict())

    @bp.route('/callsign/<callsign>', methods=['GET'])
    def get_by_callsign(callsign: str):
        record = get_index(kind).lookup_by_callsign(callsign)
        if record is None:
            return error_response('Callsign not found', 404)
        return success_response(record.to_dict())

    @bp.route('/online', methods=['POST'])
    def set_online():
        """
        Body: {"cid": ..., "callsign": ..., <kind attributes>}

        Attributes the kind does not recognise are ignored.
        """
        body = _json_body()
        cid = body.get('cid')
        callsign = body.get('callsign')
        if cid in (None, '') or callsign in (None, ''):
            raise ValidationError('Missing required fields: cid and callsign')

        attributes = {k: v for k, v in body.items() if k not in ('cid', 'callsign')}
        record = get_index(kind).set_online(cid, callsign, attributes)
        return success_response(
            record.to_dict(),
            message=f'{kind.label} set as online',
        )

    @bp.route('/offline', methods=['POST'])
    def set_offline():
        body = _json_body()
        cid = body.get('cid')
        if cid in (None, ''):
            raise ValidationError('Invalid or missing CID')

        record = get_index(kind).set_offline(cid)
        return success_response(
            record.to_dict(),
            message=f'{kind.label} set as offline',
        )

    @bp.route('/<cid>', methods=['DELETE'])
    def remove(cid: str):
        get_index(kind).remove(cid)
        return success_response(message=f'{kind.label} removed from tracking')

    return bp


legacy_bp = Blueprint('legacy', __name__)


@legacy_bp.route('/callsign/<callsign>', methods=['GET'])
def get_controller_by_callsign(callsign: str):
    """Controller lookup at its legacy, unprefixed path."""
    record = get_index(CONTROLLER).lookup_by_callsign(callsign)
    if record is None:
        return error_response('Callsign not found', 404)
    return success_response(record.to_dict())
