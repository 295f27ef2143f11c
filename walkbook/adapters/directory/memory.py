"""In-memory user directory adapter - Implements UserDirectory protocol."""

from walkbook.adapters.repository.memory import MemoryDatabase, PetRow, UserRow
from walkbook.domain.records import Actor, Role

from .passwords import check_password, hash_password, normalize_email


class InMemoryUserDirectory:
    """Implements UserDirectory protocol over a MemoryDatabase."""

    def __init__(self, db: MemoryDatabase, bcrypt_cost: int = 10) -> None:
        self._db = db
        self._bcrypt_cost = bcrypt_cost

    def authenticate(self, email: str, password: str) -> Actor | None:
        normalized = normalize_email(email)
        with self._db.lock:
            user = next((u for u in self._db.users.values() if u.email == normalized), None)

        password_valid = check_password(password, user.password_hash if user else None)
        if user is None or not password_valid or not user.is_active:
            return None
        return Actor(id=user.id, role=user.role)

    def is_active_walker(self, walker_id: str) -> bool:
        with self._db.lock:
            user = self._db.users.get(walker_id)
        return user is not None and user.role is Role.WALKER and user.is_active

    def owns_pet(self, owner_id: str, pet_id: str) -> bool:
        with self._db.lock:
            pet = self._db.pets.get(pet_id)
        return pet is not None and pet.owner_id == owner_id

    def add_user(self, email: str, password: str, name: str, role: Role) -> str:
        password_hash = hash_password(password, self._bcrypt_cost)
        normalized = normalize_email(email)
        with self._db.lock:
            if any(u.email == normalized for u in self._db.users.values()):
                raise ValueError(f"email already registered: {normalized}")
            user_id = self._db.new_id()
            self._db.users[user_id] = UserRow(
                id=user_id, email=normalized, password_hash=password_hash, name=name, role=role
            )
        return user_id

    def add_pet(self, owner_id: str, name: str, breed: str | None = None) -> str:
        with self._db.lock:
            if owner_id not in self._db.users:
                raise ValueError(f"unknown owner: {owner_id}")
            pet_id = self._db.new_id()
            self._db.pets[pet_id] = PetRow(id=pet_id, owner_id=owner_id, name=name, breed=breed)
        return pet_id

    def deactivate_user(self, user_id: str) -> None:
        with self._db.lock:
            self._db.users[user_id].is_active = False
