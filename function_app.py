import azure.functions as func
from relay.proxy_logic import PASSTHROUGH, STRUCTURED, HandlerOptions, handle_proxy_request
from relay.settings import get_config

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

TOKEN_ANALYSIS = HandlerOptions(prompt_mode=STRUCTURED, require_token=True)
OPEN_ANALYSIS = HandlerOptions(prompt_mode=STRUCTURED, require_token=False)
CHAT_RELAY = HandlerOptions(prompt_mode=PASSTHROUGH, require_token=False)


@app.route(route="ai-proxy", auth_level=func.AuthLevel.ANONYMOUS)
def ai_proxy(req: func.HttpRequest) -> func.HttpResponse:
    return handle_proxy_request(req, get_config(), TOKEN_ANALYSIS)


@app.route(route="analyze", auth_level=func.AuthLevel.ANONYMOUS)
def analyze(req: func.HttpRequest) -> func.HttpResponse:
    return handle_proxy_request(req, get_config(), OPEN_ANALYSIS)


@app.route(route="chat-proxy", auth_level=func.AuthLevel.ANONYMOUS)
def chat_proxy(req: func.HttpRequest) -> func.HttpResponse:
    return handle_proxy_request(req, get_config(), CHAT_RELAY)


@app.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health(req: func.HttpRequest) -> func.HttpResponse:
    return func.HttpResponse("ok", status_code=200)
