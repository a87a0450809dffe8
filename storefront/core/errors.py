from __future__ import annotations


class StorefrontError(Exception):
    """Base class for errors a storefront caller can act on."""

    status_code = 400
    code = "STOREFRONT_ERROR"


class CustomerNotLoggedInError(StorefrontError):
    status_code = 403
    code = "CHECKOUT_CUSTOMER_NOT_LOGGED_IN"

    def __init__(self):
        super().__init__("Customer is not logged in.")


class InvalidUuidError(StorefrontError):
    status_code = 400
    code = "FRAMEWORK_INVALID_UUID"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f'Value is not a valid UUID: "{value}"')


class AddressNotFoundError(StorefrontError):
    status_code = 404
    code = "CHECKOUT_CUSTOMER_ADDRESS_NOT_FOUND"

    def __init__(self, address_id: str):
        self.address_id = address_id
        super().__init__(f'Customer address with id "{address_id}" not found.')


class CustomerNotFoundError(StorefrontError):
    status_code = 401
    code = "CHECKOUT_CUSTOMER_NOT_FOUND"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f'No matching customer for email "{email}" was found.')


class BadCredentialsError(StorefrontError):
    status_code = 401
    code = "CHECKOUT_CUSTOMER_AUTH_BAD_CREDENTIALS"

    def __init__(self):
        super().__init__("Invalid username and/or password.")


class CustomerAlreadyExistsError(StorefrontError):
    status_code = 409
    code = "CHECKOUT_CUSTOMER_ALREADY_EXISTS"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f'A customer with email "{email}" already exists.')


class ConfirmationMismatchError(StorefrontError):
    status_code = 400
    code = "CHECKOUT_CUSTOMER_CONFIRMATION_MISMATCH"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} and its confirmation do not match.")


class CannotDeleteDefaultAddressError(StorefrontError):
    status_code = 400
    code = "CHECKOUT_CUSTOMER_ADDRESS_IS_DEFAULT"

    def __init__(self, address_id: str):
        self.address_id = address_id
        super().__init__(f'Customer address with id "{address_id}" is a default address and cannot be deleted.')
