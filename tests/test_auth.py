import pytest

from medicare.core.config import settings

test_user_data = {
    "email": "test@example.com",
    "password": "TestPassword123",
    "role": "patient",
    "full_name": "Test User"
}

test_login_data = {
    "email": "test@example.com",
    "password": "TestPassword123"
}

class TestAuthentication:
    
    def test_register_user(self, client):
        """Test user registration."""
        response = client.post("/api/v1/auth/register", json=test_user_data)
        assert response.status_code == 201
        
        data = response.json()
        assert data["email"] == test_user_data["email"]
        assert data["role"] == "patient"
        assert data["full_name"] == "Test User"
        assert "password" not in data
    
    def test_register_duplicate_email(self, client):
        """Test registration with duplicate email."""
        client.post("/api/v1/auth/register", json=test_user_data)
        
        response = client.post("/api/v1/auth/register", json=test_user_data)
        assert response.status_code == 400
        assert "already registered" in response.json()["detail"]
    
    def test_register_short_password(self, client):
        """Test registration with a password under six characters."""
        invalid_data = test_user_data.copy()
        invalid_data["password"] = "weak"
        
        response = client.post("/api/v1/auth/register", json=invalid_data)
        assert response.status_code == 422
    
    def test_register_doctor_creates_doctor_record(self, client):
        """Doctor sign-up adds an entry to the doctor directory."""
        doctor_data = {
            "email": "doc@example.com",
            "password": "TestPassword123",
            "role": "doctor",
            "full_name": "Dr. Ada Lovelace",
            "specialization": "Cardiologist",
        }
        assert client.post("/api/v1/auth/register", json=doctor_data).status_code == 201
        
        login = client.post("/api/v1/auth/login", json={"email": "doc@example.com", "password": "TestPassword123"})
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
        
        doctors = client.get("/api/v1/doctors", headers=headers).json()
        assert len(doctors) == 1
        assert doctors[0]["full_name"] == "Dr. Ada Lovelace"
        assert doctors[0]["specialization"] == "Cardiologist"
        assert doctors[0]["availability"] == settings.DEFAULT_DOCTOR_AVAILABILITY
    
    def test_register_doctor_requires_specialization(self, client):
        doctor_data = {
            "email": "doc@example.com",
            "password": "TestPassword123",
            "role": "doctor",
            "full_name": "Dr. Ada Lovelace",
        }
        response = client.post("/api/v1/auth/register", json=doctor_data)
        assert response.status_code == 422
    
    def test_register_admin_disabled(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_ADMIN_SIGNUP", False)
        admin_data = dict(test_user_data, role="admin")
        
        response = client.post("/api/v1/auth/register", json=admin_data)
        assert response.status_code == 403
    
    def test_register_rate_limited(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_REQUESTS", 2)
        
        for i in range(2):
            data = dict(test_user_data, email=f"user{i}@example.com")
            assert client.post("/api/v1/auth/register", json=data).status_code == 201
        
        data = dict(test_user_data, email="user3@example.com")
        response = client.post("/api/v1/auth/register", json=data)
        assert response.status_code == 429
    
    def test_login_success(self, client):
        """Test successful login."""
        client.post("/api/v1/auth/register", json=test_user_data)
        
        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 200
        
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "patient"
        assert data["portal"] == "/patient"
    
    @pytest.mark.parametrize("role,portal,extra", [
        ("admin", "/admin", {}),
        ("doctor", "/doctor", {"specialization": "Dermatologist"}),
    ])
    def test_login_routes_to_role_portal(self, client, role, portal, extra):
        data = dict(test_user_data, role=role, **extra)
        client.post("/api/v1/auth/register", json=data)
        
        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.json()["portal"] == portal
    
    def test_login_invalid_credentials(self, client):
        """Test login with invalid credentials."""
        invalid_login = {
            "email": "nonexistent@example.com",
            "password": "wrongpassword"
        }
        
        response = client.post("/api/v1/auth/login", json=invalid_login)
        assert response.status_code == 401
    
    def test_login_wrong_password(self, client):
        """Test login with wrong password."""
        client.post("/api/v1/auth/register", json=test_user_data)
        
        wrong_login = test_login_data.copy()
        wrong_login["password"] = "wrongpassword"
        
        response = client.post("/api/v1/auth/login", json=wrong_login)
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"
    
    def test_get_current_user(self, client):
        """Test getting current user info."""
        client.post("/api/v1/auth/register", json=test_user_data)
        login_response = client.post("/api/v1/auth/login", json=test_login_data)
        
        token = login_response.json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}
        
        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 200
        
        data = response.json()
        assert data["email"] == test_user_data["email"]
        assert data["full_name"] == "Test User"
    
    def test_get_current_user_invalid_token(self, client):
        """Test get current user with invalid token."""
        headers = {"Authorization": "Bearer invalid_token"}
        
        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
    
    def test_refresh_token_cannot_authenticate(self, client):
        client.post("/api/v1/auth/register", json=test_user_data)
        login_response = client.post("/api/v1/auth/login", json=test_login_data)
        
        headers = {"Authorization": f"Bearer {login_response.json()['refresh_token']}"}
        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
    
    def test_refresh_token(self, client):
        """Test token refresh."""
        client.post("/api/v1/auth/register", json=test_user_data)
        login_response = client.post("/api/v1/auth/login", json=test_login_data)
        
        refresh_token = login_response.json()["refresh_token"]
        
        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": refresh_token}
        )
        assert response.status_code == 200
        
        data = response.json()
        assert "access_token" in data
        assert data["refresh_token"] != refresh_token
        
        # the old refresh token was rotated out
        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": refresh_token}
        )
        assert response.status_code == 401
    
    def test_refresh_invalid_token(self, client):
        """Test refresh with invalid token."""
        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": "invalid_token"}
        )
        assert response.status_code == 401
    
    def test_logout(self, client):
        """Signing out revokes the refresh token."""
        client.post("/api/v1/auth/register", json=test_user_data)
        login_response = client.post("/api/v1/auth/login", json=test_login_data)
        
        refresh_token = login_response.json()["refresh_token"]
        
        response = client.post(
            "/api/v1/auth/logout",
            json={"refresh_token": refresh_token}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Successfully logged out"
        
        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": refresh_token}
        )
        assert response.status_code == 401

class TestSession:

    def test_logout_ends_session(self, client, patient):
        response = client.post(
            "/api/v1/auth/logout",
            json={"refresh_token": patient["refresh_token"]}
        )
        assert response.status_code == 200

        response = client.get("/api/v1/auth/session", headers=patient["headers"])
        assert response.status_code == 200
        assert response.json() is None

        response = client.get("/api/v1/patient/appointments", headers=patient["headers"])
        assert response.status_code == 401

    def test_refresh_retires_previous_access_token(self, client, patient):
        response = client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": patient["refresh_token"]}
        )
        new_headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        assert client.get("/api/v1/auth/me", headers=patient["headers"]).status_code == 401
        assert client.get("/api/v1/auth/me", headers=new_headers).status_code == 200

    def test_new_sign_in_ends_older_session(self, client, patient):
        client.post(
            "/api/v1/auth/login",
            json={"email": "patient@example.com", "password": "TestPassword123"}
        )

        response = client.get("/api/v1/auth/session", headers=patient["headers"])
        assert response.json() is None

    def test_signed_out_session_is_null(self, client):
        response = client.get("/api/v1/auth/session")
        assert response.status_code == 200
        assert response.json() is None
    
    def test_invalid_token_session_is_null(self, client):
        response = client.get("/api/v1/auth/session", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 200
        assert response.json() is None
    
    def test_signed_in_session(self, client, patient):
        response = client.get("/api/v1/auth/session", headers=patient["headers"])
        assert response.status_code == 200
        
        data = response.json()
        assert data["id"] == patient["user"]["id"]
        assert data["email"] == "patient@example.com"
        assert data["role"] == "patient"
        assert data["full_name"] == "Jane Doe"
