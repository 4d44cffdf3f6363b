from sqlalchemy.orm import Session
from core.database import SessionLocal, engine, Base
from core.logging_config import get_logger
from models.all_models import Event, Category, Criteria, Judge, Candidate, Gender, Score

logger = get_logger("seed")

def seed_data():
    logger.info("Seeding database with a demo pageant...")

    # Ensure tables exist
    Base.metadata.create_all(bind=engine)
    db: Session = SessionLocal()

    try:
        if db.query(Event).filter(Event.name == "Mr. & Ms. Intramurals").first():
            logger.info("Demo event already exists. Skipping.")
            return

        # =====================================================
        # 1. EVENT, CATEGORIES & CRITERIA
        # =====================================================
        event = Event(name="Mr. & Ms. Intramurals")
        db.add(event)
        db.flush()

        categories_config = [
            {"name": "Production Number", "weight": 0.4,
             "criteria": [("Stage Presence", 50), ("Poise", 50)]},
            {"name": "Question & Answer", "weight": 0.6,
             "criteria": [("Content", 60), ("Delivery", 40)]},
        ]

        criteria_list = []
        for cfg in categories_config:
            cat = Category(event_id=event.id, name=cfg["name"], weight=cfg["weight"])
            db.add(cat)
            db.flush()
            for crit_name, max_score in cfg["criteria"]:
                crit = Criteria(category_id=cat.id, name=crit_name, max_score=max_score)
                db.add(crit)
                db.flush()
                criteria_list.append((cat, crit))

        # =====================================================
        # 2. JUDGES (the last one is excluded from tabulation)
        # =====================================================
        judges = [
            Judge(event_id=event.id, name="Judge Judy"),
            Judge(event_id=event.id, name="Simon Cowell"),
            Judge(event_id=event.id, name="Paula Abdul", score_exclusion=True),
        ]
        db.add_all(judges)

        # =====================================================
        # 3. CANDIDATES
        # =====================================================
        candidates = [
            Candidate(first_name="Juan", middle_name="Santos", last_name="Dela Cruz", candidate_number=1, gender=Gender.MALE),
            Candidate(first_name="Pedro", middle_name="", last_name="Penduko", candidate_number=2, gender=Gender.MALE),
            Candidate(first_name="Maria", middle_name="Clara", last_name="Ibarra", candidate_number=1, gender=Gender.FEMALE),
            Candidate(first_name="Sisa", middle_name="", last_name="Alba", candidate_number=2, gender=Gender.FEMALE),
        ]
        db.add_all(candidates)
        db.flush()

        # =====================================================
        # 4. SCORES (deterministic spread so rankings differ)
        # =====================================================
        for j_idx, judge in enumerate(judges):
            for c_idx, cand in enumerate(candidates):
                for cat, crit in criteria_list:
                    value = crit.max_score - ((j_idx + 2 * c_idx + crit.id) % 7)
                    db.add(Score(
                        score=max(value, 0), max=crit.max_score,
                        candidate_id=cand.id, criteria_id=crit.id,
                        category_id=cat.id, judge_id=judge.id
                    ))

        db.commit()
        logger.info("Seeded event '%s' (id=%s)", event.name, event.id)
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    seed_data()
