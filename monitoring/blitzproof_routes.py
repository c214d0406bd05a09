"""
BlitzProof Routes

API endpoints for token security ratings:
- Score lookup, calculation and admin override
- Token info lookup and admin update
- Combined score + info view
- Admin listing and deletion
"""

import logging
from typing import Any, Dict, Optional

from aiohttp import web

from core.score_service import BlitzProofScoreService
from monitoring.logger import StructuredLogger
from utils.constants import DEFAULT_ADMIN_ACTOR
from utils.errors import ValidationError

logger = logging.getLogger("BlitzProofRoutes")


def _error(status: int, error: str, **extra) -> web.Response:
    body = {'success': False, 'error': error}
    body.update(extra)
    return web.json_response(body, status=status)


class BlitzProofRoutes:
    """
    BlitzProof HTTP adapter

    Translates requests into score service calls and service outcomes into
    status codes. Authentication is applied upstream by middleware, which
    stores the user on request['user'].
    """

    def __init__(
        self,
        score_service: BlitzProofScoreService,
        prefix: str = '/api/blitzproof',
        structured_logger: Optional[StructuredLogger] = None
    ):
        """
        Initialize BlitzProof routes

        Args:
            score_service: Score service instance
            prefix: URL prefix the routes are mounted under
            structured_logger: Optional structured logger for error events
        """
        self.service = score_service
        self.prefix = prefix.rstrip('/')
        self.structured_logger = structured_logger
        self.logger = logger

    def setup_routes(self, app: web.Application):
        """Setup BlitzProof routes"""
        p = self.prefix

        # Public (read-only)
        app.router.add_get(f'{p}/score/{{token_id}}', self.get_score)
        app.router.add_get(f'{p}/info/{{token_id}}', self.get_token_info)
        app.router.add_get(f'{p}/combined/{{token_id}}', self.get_combined)
        app.router.add_post(f'{p}/calculate/{{token_id}}', self.calculate_score)

        # Admin
        app.router.add_put(f'{p}/score/{{token_id}}', self.update_score)
        app.router.add_put(f'{p}/info/{{token_id}}', self.update_token_info)
        app.router.add_get(f'{p}/admin/all', self.get_all_tokens)
        app.router.add_delete(f'{p}/admin/{{token_id}}', self.delete_token_data)

        self.logger.info(f"BlitzProof routes configured under {p}")

    @staticmethod
    def _actor(request: web.Request) -> str:
        """User id set by auth middleware, else the generic admin actor"""
        user = request.get('user')
        user_id = getattr(user, 'user_id', None) if user is not None else None
        return str(user_id) if user_id else DEFAULT_ADMIN_ACTOR

    @staticmethod
    async def _json_body(request: web.Request, required: bool = True) -> Optional[Dict[str, Any]]:
        if not request.can_read_body:
            if required:
                raise ValidationError("Request body is required")
            return None
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Request body is not valid JSON")
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body

    def _internal_error(self, operation: str, error: Exception, token_id: Optional[str] = None) -> web.Response:
        if self.structured_logger:
            self.structured_logger.log_error(error, {'operation': operation, 'token_id': token_id})
        else:
            self.logger.error(f"Error in {operation} for {token_id}: {error}", exc_info=True)
        return _error(500, 'Internal server error')

    async def get_score(self, request: web.Request) -> web.Response:
        """Get the BlitzProof score for a token"""
        token_id = request.match_info['token_id']
        try:
            score = await self.service.get_score(token_id)
            if not score:
                return _error(404, 'BlitzProof score not found for this token')

            return web.json_response({'success': True, 'data': score.to_dict()})

        except Exception as e:
            return self._internal_error('get_score', e, token_id)

    async def update_score(self, request: web.Request) -> web.Response:
        """Admin override of a token's score"""
        token_id = request.match_info['token_id']
        try:
            body = await self._json_body(request)
            score = await self.service.update_score(token_id, body, self._actor(request))

            return web.json_response({
                'success': True,
                'data': score.to_dict(),
                'message': 'BlitzProof score updated successfully'
            })

        except ValidationError as e:
            return _error(400, str(e), missingFields=e.missing_fields)
        except Exception as e:
            return self._internal_error('update_score', e, token_id)

    async def calculate_score(self, request: web.Request) -> web.Response:
        """Force a cache bust and re-run the score read path"""
        token_id = request.match_info['token_id']
        try:
            body = await self._json_body(request, required=False) or {}
            contract_address = body.get('contractAddress')

            self.logger.info(f"Calculating BlitzProof score for {token_id}")
            score = await self.service.calculate_score(token_id, contract_address)
            if not score:
                return _error(404, 'Failed to calculate BlitzProof score')

            return web.json_response({
                'success': True,
                'data': score.to_dict(),
                'message': 'BlitzProof score calculated successfully'
            })

        except ValidationError as e:
            return _error(400, str(e))
        except Exception as e:
            return self._internal_error('calculate_score', e, token_id)

    async def get_combined(self, request: web.Request) -> web.Response:
        """Score and token info in one response"""
        token_id = request.match_info['token_id']
        try:
            combined = await self.service.get_combined(token_id)
            if combined is None:
                return _error(404, 'Token data not found')

            score, info = combined
            return web.json_response({
                'success': True,
                'data': {
                    'blitzProofScore': score.to_dict() if score else None,
                    'tokenInfo': info.to_dict() if info else None
                }
            })

        except Exception as e:
            return self._internal_error('get_combined', e, token_id)

    async def get_token_info(self, request: web.Request) -> web.Response:
        token_id = request.match_info['token_id']
        try:
            info = await self.service.get_token_info(token_id)
            if not info:
                return _error(404, 'Token info not found')

            return web.json_response({'success': True, 'data': info.to_dict()})

        except Exception as e:
            return self._internal_error('get_token_info', e, token_id)

    async def update_token_info(self, request: web.Request) -> web.Response:
        token_id = request.match_info['token_id']
        try:
            body = await self._json_body(request)
            info = await self.service.update_token_info(token_id, body, self._actor(request))

            return web.json_response({
                'success': True,
                'data': info.to_dict(),
                'message': 'Token info updated successfully'
            })

        except ValidationError as e:
            return _error(400, str(e), missingFields=e.missing_fields)
        except Exception as e:
            return self._internal_error('update_token_info', e, token_id)

    async def get_all_tokens(self, request: web.Request) -> web.Response:
        """Admin listing of every scored token"""
        try:
            tokens = await self.service.get_all_tokens_with_scores()
            return web.json_response({
                'success': True,
                'data': [token.to_dict() for token in tokens]
            })

        except Exception as e:
            return self._internal_error('get_all_tokens', e)

    async def delete_token_data(self, request: web.Request) -> web.Response:
        token_id = request.match_info['token_id']
        try:
            await self.service.delete_token_data(token_id)
            self.logger.info(f"BlitzProof data for {token_id} deleted by {self._actor(request)}")

            return web.json_response({
                'success': True,
                'message': 'Token data deleted successfully'
            })

        except Exception as e:
            return self._internal_error('delete_token_data', e, token_id)
