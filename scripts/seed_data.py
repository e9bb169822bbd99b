import datetime as dt
import random

from subsidy_audit.db import SessionLocal, init_db
from subsidy_audit.models import Beneficiary, RiskCase

DISTRICTS = ["Pune", "Nashik", "Nagpur", "Thane", "Solapur", "Kolhapur", "Satara", "Sangli"]


def main(count=400, seed=7):
    rng = random.Random(seed)
    init_db()
    session = SessionLocal()
    today = dt.date.today()
    for i in range(count):
        beneficiary_id = f"BEN{i:05d}"
        # Nagpur is over-represented so the spike listing has something to show.
        district = "Nagpur" if rng.random() < 0.25 else rng.choice(DISTRICTS)
        flags = [rng.random() < 0.15 for _ in range(4)]
        level = "HIGH" if sum(flags) >= 2 else "MEDIUM" if any(flags) else "LOW"
        session.merge(RiskCase(
            beneficiary_id=beneficiary_id,
            risk_level=level,
            mean_squared_error=round(rng.uniform(0.001, 0.2) * (1 + sum(flags)), 6),
            flag_high_recent_activity=flags[0],
            flag_multiple_dealers=flags[1],
            flag_cross_district=flags[2],
            flag_high_lifetime_usage=flags[3],
            scored_on=today - dt.timedelta(days=rng.randint(0, 60)),
        ))
        session.merge(Beneficiary(beneficiary_id=beneficiary_id, residence_district=district))
    session.commit()
    session.close()
    print(f"Seeded {count} cases")


if __name__ == "__main__":
    main()
