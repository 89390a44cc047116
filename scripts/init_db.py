from kidrewards.db.session import engine, SessionLocal
from kidrewards.db.base import Base
from kidrewards.services.seed import seed_demo_data
def init():
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_demo_data(db)
if __name__ == "__main__":
    init()
    print("Database schema created and demo data seeded.")
