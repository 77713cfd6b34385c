from mangum import Mangum
from main import app

# Sessions live in process memory, so a drafting session only survives as
# long as the warm Lambda container that created it.
_asgi_handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    return _asgi_handler(event, context)
