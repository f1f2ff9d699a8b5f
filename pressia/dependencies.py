from fastapi import HTTPException, Request, status

from pressia.bridge import Bridge


def get_bridge(request: Request) -> Bridge:
    bridge = getattr(request.app.state, 'bridge', None)
    if bridge is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail='Storage is not open')
    return bridge
