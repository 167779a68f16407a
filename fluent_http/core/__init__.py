SERVICE_NAME = "fluent_http"
