"""Exceptions raised by swap service operations.

Every error is scoped to the transaction that raised it. Nothing here is retried.
"""


class SwapServiceError(Exception):
    """Base class for all rejections reported to callers."""

    status_code = 400


class InsufficientFee(SwapServiceError):
    """Payment below the oracle's quoted fee."""

    status_code = 402

    def __init__(self, payment: int, fee: int):
        self.payment = payment
        self.fee = fee
        super().__init__(f"Insufficient fee: paid {payment}, oracle requires {fee}")


class EntropyNotReady(SwapServiceError):
    """Oracle has not reported fulfillment for the request yet."""

    status_code = 425

    def __init__(self, request_id: int):
        self.request_id = request_id
        super().__init__(f"Entropy for request {request_id} is not ready")


class InvalidRequest(SwapServiceError):
    """No live authorization for this request id and caller."""

    status_code = 404

    def __init__(self, request_id: int, reason: str = "no live authorization"):
        self.request_id = request_id
        self.reason = reason
        super().__init__(f"Invalid request {request_id}: {reason}")


class InsufficientLiquidity(SwapServiceError):
    """Reserve holdings below the computed payout."""

    status_code = 409

    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(f"Insufficient liquidity: reserve has {available}, payout needs {required}")


class InvalidProof(SwapServiceError):
    """Input proof does not match the ciphertext, caller and contract."""

    status_code = 400

    def __init__(self, message: str = "Input proof verification failed"):
        super().__init__(message)


class NotAuthorizedReader(SwapServiceError):
    """A principal tried to use a ciphertext it has no read access to."""

    status_code = 403

    def __init__(self, principal: str, handle: str):
        self.principal = principal
        self.handle = handle
        super().__init__(f"{principal} is not an authorized reader of {handle}")


class ReserveTransferFailed(SwapServiceError):
    """Reserve asset refused the payout transfer."""

    status_code = 502

    def __init__(self, to: str, amount: int):
        self.to = to
        self.amount = amount
        super().__init__(f"Reserve transfer of {amount} to {to} failed")


class ExternalServiceUnavailable(SwapServiceError):
    """An external collaborator could not be reached or answered garbage."""

    status_code = 503
