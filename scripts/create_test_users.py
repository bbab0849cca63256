"""
Script para crear usuarios de prueba (uno por rol)

Uso: python -m scripts.create_test_users
"""
import sys

from dotenv import load_dotenv

load_dotenv()

from app.config.database import Base, SessionLocal, engine
from app.core.auth.service import AuthService
from app.shared.database.models import User

TEST_USERS = [
    {"email": "admin@warehousewizard.com", "password": "admin123", "first_name": "Ana", "last_name": "Admin", "role": "admin"},
    {"email": "supervisor@warehousewizard.com", "password": "supervisor123", "first_name": "Sergio", "last_name": "Supervisor", "role": "supervisor"},
    {"email": "purchase@warehousewizard.com", "password": "purchase123", "first_name": "Paula", "last_name": "Purchase", "role": "purchase_support"},
    {"email": "sales@warehousewizard.com", "password": "sales123", "first_name": "Sofía", "last_name": "Sales", "role": "sales_support"},
    {"email": "warehouse@warehousewizard.com", "password": "warehouse123", "first_name": "María", "last_name": "Warehouse", "role": "warehouse"},
    {"email": "accounts@warehousewizard.com", "password": "accounts123", "first_name": "Andrés", "last_name": "Accounts", "role": "accounts"},
    {"email": "customer@warehousewizard.com", "password": "customer123", "first_name": "Carlos", "last_name": "Customer", "role": "customer", "company": "Acme Logistics"},
]

def create_test_users() -> int:
    """Crear los usuarios que falten; devuelve cuántos se crearon"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    created = 0

    try:
        for user_data in TEST_USERS:
            if db.query(User).filter(User.email == user_data["email"]).first():
                print(f"⏭️  Ya existe: {user_data['email']}")
                continue

            data = dict(user_data)
            password = data.pop("password")
            db.add(User(
                **data,
                password_hash=AuthService.get_password_hash(password),
                is_active=True
            ))
            created += 1
            print(f"✅ Usuario creado: {user_data['email']} / {password} ({user_data['role']})")

        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(f"\n🎉 {created} usuarios de prueba creados")
    if created:
        print("\n📋 Credenciales de prueba:")
        for user_data in TEST_USERS:
            print(f"   👤 {user_data['role'].upper()}: {user_data['email']} / {user_data['password']}")
    return created

if __name__ == "__main__":
    try:
        create_test_users()
    except Exception as e:
        print(f"❌ Error creando usuarios: {e}")
        sys.exit(1)
