from drf_spectacular.extensions import OpenApiAuthenticationExtension


class CookieOrHeaderJWTAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "ch_core.iam.auth.CookieOrHeaderJWTAuthentication"
    name = "BearerOrCookieJWT"

    def get_security_definition(self, auto_schema):
        return {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Access token via `Authorization: Bearer <token>` or the HttpOnly cookie (ch_access).",
        }


class PdfApiTokenAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "ch_core.pdf.auth.PdfApiTokenAuthentication"
    name = "PdfApiToken"

    def get_security_definition(self, auto_schema):
        return {
            "type": "http",
            "scheme": "bearer",
            "description": "Shared server secret (PDF_API_TOKEN) for the PDF rendering routes.",
        }
