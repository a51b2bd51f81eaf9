"""Tests unitarios para la jerarquía de excepciones y su conversión."""

import pytest

from backoffice.utils.error_handler import (
    AppException,
    AuthenticationException,
    AuthorizationException,
    ConflictException,
    ErrorAggregator,
    ErrorCode,
    ExternalServiceException,
    JobProcessingException,
    NotFoundException,
    RateLimitException,
    RequestTimeoutException,
    ValidationException,
    convert_to_app_exception,
    create_error_response,
    handle_exception,
)


class TestStatusMapping:
    """Tests para el mapeo excepción → código HTTP."""

    @pytest.mark.parametrize(
        "exception,status_code,code",
        [
            (ValidationException("Campo inválido", field="email"), 400, ErrorCode.VALIDATION_ERROR),
            (NotFoundException("Pedido não encontrado", resource="pedido", resource_id="1"), 404, ErrorCode.NOT_FOUND),
            (ConflictException("Email já cadastrado", field="email", value="a@b.com"), 409, ErrorCode.CONFLICT),
            (AuthenticationException(), 401, ErrorCode.AUTHENTICATION_ERROR),
            (AuthorizationException(), 403, ErrorCode.AUTHORIZATION_ERROR),
            (RequestTimeoutException(), 408, ErrorCode.REQUEST_TIMEOUT),
            (ExternalServiceException("Falha", service="supplier_api"), 502, ErrorCode.EXTERNAL_SERVICE_ERROR),
        ],
    )
    def test_status_codes(self, exception, status_code, code):
        """Cada excepción debe llevar su código HTTP y su ErrorCode."""
        assert exception.status_code == status_code
        assert exception.error_code == code

    def test_rate_limit_exception(self):
        """Debe mapear a 429 con los datos del límite."""
        exc = RateLimitException("Limite excedido", limit=100, reset_time=0, retry_after=60)

        assert exc.status_code == 429
        assert exc.error_code == ErrorCode.RATE_LIMIT_EXCEEDED

    def test_job_processing_exception(self):
        """Debe mapear a 500 con los datos del job."""
        exc = JobProcessingException("Falhou", queue="order-processing", job_name="process-new-order", job_id="1")

        assert exc.status_code == 500
        assert exc.error_code == ErrorCode.JOB_PROCESSING_FAILED

    def test_not_found_details(self):
        """Debe incluir recurso e id en los detalles."""
        exc = NotFoundException("Cliente não encontrado", resource="customer", resource_id=7)

        assert exc.to_dict()["details"] == {"resource": "customer", "resource_id": "7"}


class TestConversion:
    """Tests para convert_to_app_exception y create_error_response."""

    def test_app_exception_is_returned_unchanged(self):
        """Una AppException no debe convertirse."""
        exc = ConflictException("Duplicado")

        assert convert_to_app_exception(exc) is exc

    def test_timeout_error(self):
        """TimeoutError debe convertirse en RequestTimeoutException."""
        assert isinstance(convert_to_app_exception(TimeoutError("slow")), RequestTimeoutException)

    def test_validation_message(self):
        """Un mensaje de validación debe convertirse en ValidationException."""
        assert isinstance(convert_to_app_exception(ValueError("invalid cnpj")), ValidationException)

    def test_unknown_exception_is_internal_error(self):
        """Cualquier otra excepción debe ser INTERNAL_ERROR."""
        exc = convert_to_app_exception(KeyError("x"))

        assert type(exc) is AppException
        assert exc.error_code == ErrorCode.INTERNAL_ERROR
        assert exc.status_code == 500

    def test_error_envelope_shape(self):
        """El envelope de error debe tener success, message, code y timestamp."""
        response = create_error_response(NotFoundException("Pedido não encontrado"))

        assert response["success"] is False
        assert response["message"] == "Pedido não encontrado"
        assert response["code"] == "NOT_FOUND"
        assert "timestamp" in response


class TestHandleException:
    """Tests para handle_exception."""

    def test_reraises_converted_exception(self):
        """Con reraise debe lanzar la AppException convertida."""
        with pytest.raises(RequestTimeoutException):
            handle_exception(TimeoutError("slow"))

    def test_returns_without_reraise(self):
        """Sin reraise debe devolver la AppException con el contexto."""
        exc = handle_exception(ConflictException("Duplicado"), context={"pedido_id": "p1"}, reraise=False)

        assert isinstance(exc, ConflictException)
        assert exc.details["pedido_id"] == "p1"


class TestErrorAggregator:
    """Tests para ErrorAggregator."""

    def test_summary_splits_by_severity(self):
        """Severidad baja/media cuenta como warning y alta como error."""
        aggregator = ErrorAggregator()
        for _ in range(4):
            aggregator.increment_processed()

        aggregator.add_error(NotFoundException("Pedido não encontrado"))
        aggregator.add_error(JobProcessingException("Falhou", queue="notification", job_name="send-notification"))

        summary = aggregator.get_summary()

        assert aggregator.has_errors() and aggregator.has_warnings()
        assert summary["error_count"] == 1
        assert summary["warning_count"] == 1
        assert summary["success_count"] == 2
