"""Enquiry intake and dashboard listing."""

API = "/api/v1/enquiries"


def test_contact_enquiry(client):
    response = client.post(
        f"{API}/contact",
        json={"full_name": "Meera", "email": "meera@example.com", "message": "Group booking?"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["enquiry"]["source"] == "contact"
    assert body["enquiry"]["email"] == "meera@example.com"


def test_contact_enquiry_rejects_bad_email(client):
    response = client.post(
        f"{API}/contact",
        json={"full_name": "Meera", "email": "not-an-email", "message": "hi"},
    )
    assert response.status_code == 422


def test_modal_and_pdf_enquiries(client):
    modal = client.post(
        f"{API}/modal",
        json={"full_name": "Arjun", "whatsapp_number": "+919800000000", "message": "Dates?",
              "package_name": "Kedarnath Trek 2025"},
    )
    assert modal.status_code == 201

    pdf = client.post(
        f"{API}/pdf",
        json={"full_name": "Arjun", "whatsapp_number": "+919800000000", "email": "arjun@example.com",
              "document_url": "https://res.example.com/raw/trekdesk/obj_1"},
    )
    assert pdf.status_code == 201
    assert pdf.json()["enquiry"]["source"] == "pdf"


def test_listing_is_paginated_and_filtered(client, admin):
    for i in range(3):
        client.post(f"{API}/contact", json={"full_name": f"C{i}", "email": "c@example.com", "message": "m"})
    client.post(f"{API}/modal", json={"full_name": "M", "whatsapp_number": "12345", "message": "m"})

    page = client.get(API, params={"page": 1, "pageSize": 2}, headers=admin).json()
    assert len(page["enquiries"]) == 2
    assert page["pagination"]["totalItems"] == 4
    assert page["pagination"]["totalPages"] == 2

    contacts = client.get(API, params={"source": "contact"}, headers=admin).json()
    assert {e["source"] for e in contacts["enquiries"]} == {"contact"}
    assert contacts["pagination"]["totalItems"] == 3


def test_listing_rejects_bad_paging(client, admin):
    assert client.get(API, params={"page": 0}, headers=admin).status_code == 400
    assert client.get(API, params={"pageSize": 500}, headers=admin).status_code == 400


def test_listing_requires_admin_key(client):
    assert client.get(API).status_code == 401


def test_malformed_emails_are_rejected(client):
    for email in ("a@b..c", "meera@", "meera example.com"):
        contact = client.post(f"{API}/contact", json={"full_name": "Meera", "email": email, "message": "hi"})
        assert contact.status_code == 422, email

    pdf = client.post(
        f"{API}/pdf",
        json={"full_name": "Arjun", "whatsapp_number": "12345", "email": "a@b..c", "document_url": "https://x"},
    )
    assert pdf.status_code == 422
