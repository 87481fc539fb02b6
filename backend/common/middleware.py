"""
Custom middleware for security logging.
"""
import logging
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger('security')


class SecurityLoggingMiddleware(MiddlewareMixin):
    """
    Middleware to log security-relevant and money-moving requests.
    """

    # Paths that should be logged
    MONITORED_PATHS = [
        '/api/auth/token/',
        '/api/accounts/register/',
        '/api/orders/',
    ]

    # Order sub-paths that move money or change status
    MONEY_SUFFIXES = (
        '/escrow/store/',
        '/escrow/rider/',
        '/status/',
    )

    def process_response(self, request, response):
        # Only log monitored paths
        if not any(request.path.startswith(path) for path in self.MONITORED_PATHS):
            return response

        ip = self.get_client_ip(request)

        # Log failed authentication attempts
        if request.path.startswith('/api/auth/token/') and response.status_code == 401:
            logger.warning(f"Failed token request from IP {ip}")

        # Log successful registrations
        elif request.path.startswith('/api/accounts/register/') and response.status_code == 201:
            logger.info(f"New account registration from IP {ip}")

        # Log escrow deposits and status changes, accepted or rejected
        elif request.method == 'POST' and request.path.endswith(self.MONEY_SUFFIXES):
            level = logging.INFO if response.status_code < 400 else logging.WARNING
            logger.log(
                level,
                f"{request.method} {request.path} -> {response.status_code} from IP {ip}"
            )

        return response

    @staticmethod
    def get_client_ip(request):
        """Extract client IP from request."""
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            ip = x_forwarded_for.split(',')[0].strip()
        else:
            ip = request.META.get('REMOTE_ADDR')
        return ip
