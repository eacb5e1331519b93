from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.http import current_crew_id, flag, json_body, json_error, login_required, ok
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body() or request.form
        try:
            crew = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except DomainError as e:
            return json_error(e)

        session.permanent = flag(data, "remember_me")
        app.permanent_session_lifetime = timedelta(days=7)
        session["crew_id"] = crew.crew_id
        session["name"] = crew.full_name
        session["email"] = crew.email

        sessions = container.sessions.for_crew(crew.crew_id)
        active = sessions.load_active_session()
        return ok(
            crew={"id": crew.crew_id, "full_name": crew.full_name, "email": crew.email},
            active_sessions=[s.to_dict() for s in active],
        )

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        crew_id = session.get("crew_id")
        if crew_id:
            container.sessions.discard(str(crew_id))
        session.clear()
        return ok(message="Disconnesso")

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        crew_id = current_crew_id()
        member = container.crew_service.get(crew_id)
        if member is None:
            session.clear()
            return json_error(DomainError("Profilo non trovato"))
        return ok(
            crew={
                "id": member.id,
                "full_name": member.full_name,
                "email": member.email,
                "overtime_benefit": member.overtime_benefit,
            },
            meal_benefits=container.crew_service.meal_benefits_for(crew_id).to_dict(),
        )
