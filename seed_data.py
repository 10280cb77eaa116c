from datetime import datetime, timedelta
from extensions import db
from models import (
    Profile, Jam, Battle, Candidate, Participant, Judge, Criterion, CriteriaScore,
    VoteComment, BattleResult, CreditTransaction, BattleStars,
)
import logic


def clear_data():
    # Идем в обратном порядке зависимостей
    db.session.query(CriteriaScore).delete()
    db.session.query(VoteComment).delete()
    db.session.query(BattleResult).delete()
    db.session.query(CreditTransaction).delete()
    db.session.query(BattleStars).delete()
    db.session.query(Participant).delete()
    db.session.query(Judge).delete()
    db.session.query(Candidate).delete()
    db.session.query(Battle).delete()
    db.session.query(Criterion).delete()
    db.session.query(Jam).delete()
    db.session.query(Profile).delete()
    db.session.commit()


def seed():
    """
    Тестовые данные: организатор, два конфитюрщика, три судьи, критерии
    и демо-баттл в фазе selection с двумя выбранными участниками.
    """
    admin = Profile(code='000001', username='organisateur', role='admin')
    maker_1 = Profile(code='100001', username='mamie_fraise', role='member')
    maker_2 = Profile(code='100002', username='abricot_royal', role='member')
    judges = [Profile(code=f'20000{i}', username=f'juge_{i}', role='member') for i in range(1, 4)]
    db.session.add_all([admin, maker_1, maker_2, *judges])
    db.session.commit()

    # --- Джемы: по три одобренных у каждого участника ---
    for maker, fruits in ((maker_1, ['Fraise', 'Framboise', 'Cerise']),
                          (maker_2, ['Abricot', 'Mirabelle', 'Prune'])):
        db.session.add_all([Jam(creator_id=maker.id, name=f'Confiture {fruit}', status='approved') for fruit in fruits])
    db.session.add(Jam(creator_id=maker_1.id, name='Confiture Rhubarbe', status='pending'))

    # --- Критерии ---
    db.session.add_all([
        Criterion(name='Goût', description='Équilibre et intensité du fruit', order=1),
        Criterion(name='Texture', description='Prise, onctuosité, morceaux', order=2),
        Criterion(name='Apparence', description='Couleur, brillance, présentation', order=3),
        Criterion(name='Respect du thème', description='Contraintes du battle respectées', order=4),
    ])
    db.session.commit()

    now = datetime.now().replace(microsecond=0)
    battle = logic.create_battle(
        theme='Fruits rouges sans pectine',
        constraints={'pectine_ajoutee': False, 'sucre_max_pct': 45, 'fruits_min_pct': 55},
        registration_end=now + timedelta(days=14),
        production_end=now + timedelta(days=30),
        voting_end=now + timedelta(days=45),
        reward_credits=50,
        min_jams_required=3,
        reward_description='50 crédits et une mise en avant sur la page d\'accueil',
        is_featured=True,
    )

    candidates = [
        logic.submit_candidacy(battle.id, maker_1.id, 'Je fais des confitures depuis 20 ans.'),
        logic.submit_candidacy(battle.id, maker_2.id, 'Spécialiste des fruits à noyau.'),
    ]
    for judge in judges:
        logic.validate_judge(logic.apply_as_judge(battle.id, judge.id).id)

    logic.advance_phase(battle.id, 'selection')
    for candidate in candidates:
        logic.select_candidate(candidate.id)
    return battle


if __name__ == '__main__':
    from app import create_app

    # Создаем экземпляр приложения, чтобы получить контекст
    app = create_app()

    with app.app_context():
        db.create_all()
        print("Очистка старых данных...")
        clear_data()
        print("Очистка завершена.")

        print("Добавление тестовых данных...")
        try:
            demo = seed()
            print(f"Тестовые данные успешно добавлены! Демо-баттл #{demo.id}")
        except Exception as e:
            db.session.rollback()
            print(f"Произошла ошибка при добавлении данных: {e}")
            raise
