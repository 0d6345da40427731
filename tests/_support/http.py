"""Request headers and bodies shared by the API tests."""

AUTH_HEADERS = {
    "X-User-Id": "u1",
    "X-User-Groups": "customers, beta",
    "Authorization": "Bearer token-abc",
}

ORDER_BODY = {
    "email": "ada@example.com",
    "name": "Ada",
    "surname": "Lovelace",
    "address": "12 St James's Square, London",
    "telNumber": "+44 20 7946 0000",
    "orderList": '[{"productId": "p1", "quantity": 2}]',
    "totalPrice": 299.99,
}

ADMIN_HEADERS = {
    **AUTH_HEADERS,
    "X-User-Groups": "customers, order-admins",
}
