PROJECT = {
    "title": "Campus Wi-Fi",
    "category": "Networking",
    "description": "Wireless rollout across four buildings.",
    "technology_used": "Ubiquiti, VLANs",
    "client_industry": "Education",
    "icon": "wifi",
    "images": [{"url": "https://img.mgv.test/a.jpg", "public_id": "projects/a"}],
}


# ---------------------------
# Products
# ---------------------------
def test_product_crud(client, admin, customer):
    new = {"sku": "RTR-1", "name": "Router", "price": "49.90", "stock": 7, "description": "Dual band"}
    assert client.post("/api/products/", json=new, headers=customer.headers).status_code == 403

    created = client.post("/api/products/", json=new, headers=admin.headers)
    assert created.status_code == 201
    product = created.get_json()
    assert product["price"] == 49.9
    assert product["stock"] == 7

    dup = client.post("/api/products/", json=new, headers=admin.headers)
    assert dup.status_code == 409

    updated = client.put(f"/api/products/{product['id']}", json={"stock": 3}, headers=admin.headers)
    assert updated.get_json()["stock"] == 3
    assert client.put(f"/api/products/{product['id']}", json={"stock": -1},
                      headers=admin.headers).status_code == 400

    assert client.get(f"/api/products/{product['id']}").get_json()["name"] == "Router"
    assert client.delete(f"/api/products/{product['id']}", headers=admin.headers).get_json() == \
        {"deleted": product["id"]}
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_product_listing_search_and_paging(client, make_product):
    make_product(sku="A", name="Access Point", price="80.00")
    make_product(sku="B", name="Cable", price="5.00")
    make_product(sku="C", name="Switch", price="120.00")

    page = client.get("/api/products/?per_page=2&sort_by=price&sort_dir=desc").get_json()
    assert [p["name"] for p in page["products"]] == ["Switch", "Access Point"]
    assert page["total"] == 3
    assert page["pages"] == 2

    found = client.get("/api/products/?search=cab").get_json()
    assert [p["sku"] for p in found["products"]] == ["B"]


# ---------------------------
# Projects
# ---------------------------
def test_project_create_requires_fields_and_images(client, admin):
    missing = dict(PROJECT, icon="")
    assert client.post("/api/projects/", json=missing, headers=admin.headers).status_code == 400
    no_images = dict(PROJECT, images=[])
    resp = client.post("/api/projects/", json=no_images, headers=admin.headers)
    assert resp.get_json()["error"] == "At least one image is required for the project."


def test_project_lifecycle(client, admin):
    created = client.post("/api/projects/", json=PROJECT, headers=admin.headers)
    assert created.status_code == 201
    project = created.get_json()["project"]
    assert project["link"] == "#"

    assert client.post("/api/projects/", json=PROJECT, headers=admin.headers).status_code == 409

    updated = client.put(f"/api/projects/{project['id']}", headers=admin.headers, json={
        "title": "Campus Wi-Fi 2",
        "existing_image_public_ids": [],
        "new_images": [{"url": "https://img.mgv.test/b.jpg", "public_id": "projects/b"}],
    }).get_json()["project"]
    assert updated["title"] == "Campus Wi-Fi 2"
    assert [img["public_id"] for img in updated["images"]] == ["projects/b"]

    kept = client.put(f"/api/projects/{project['id']}", headers=admin.headers, json={
        "existing_image_public_ids": ["projects/b"],
        "new_images": [{"url": "https://img.mgv.test/c.jpg", "public_id": "projects/c"}],
    }).get_json()["project"]
    assert [img["public_id"] for img in kept["images"]] == ["projects/b", "projects/c"]

    assert client.get(f"/api/projects/{project['id']}").status_code == 200
    assert client.delete(f"/api/projects/{project['id']}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/projects/{project['id']}").status_code == 404


def test_project_listing_is_paginated(client, admin):
    for n in range(3):
        client.post("/api/projects/", json=dict(PROJECT, title=f"Project {n}"), headers=admin.headers)
    page = client.get("/api/projects/?limit=2").get_json()
    assert page["total_projects"] == 3
    assert page["total_pages"] == 2
    assert page["current_page"] == 1
    assert [p["title"] for p in page["projects"]] == ["Project 2", "Project 1"]
