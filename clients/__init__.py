# Infrastructure clients
from clients.backoffice_client import BackofficeClient, BackofficeAPIError
