from starlette.responses import Response

# En-têtes envoyés par supabase-js et fetch depuis le site statique
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST,OPTIONS",
    "Access-Control-Allow-Headers": (
        "authorization, apikey, content-type, x-client-info, X-Client-Info, "
        "x-supabase-api-version, x-requested-with"
    ),
    "Access-Control-Max-Age": "86400",
}

def with_cors(response: Response) -> Response:
    """Ajoute les en-têtes CORS permissifs (le checkout est appelé depuis d'autres domaines)."""
    for key, value in CORS_HEADERS.items():
        response.headers[key] = value
    return response
