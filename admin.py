import streamlit as st
import pandas as pd
from datetime import date

from petfunny.models.booking import BookingStatus
from petfunny.models.schedule import OpeningHoursRule, WEEKDAY_NAMES
from petfunny.services.admin_session import AdminApiClient, AdminSession, ApiError
from petfunny.services.time_utils import format_date_br

# Page Config
st.set_page_config(
    page_title="PetFunny Admin",
    page_icon="🐾",
    layout="wide"
)

st.title("PetFunny - Painel Administrativo")


def get_session() -> AdminSession:
    if "admin" not in st.session_state:
        admin = AdminSession(AdminApiClient())
        admin.reload_opening_hours()
        admin.reload_reference_data()
        admin.reload_bookings()
        st.session_state["admin"] = admin
    return st.session_state["admin"]


admin = get_session()

if st.button("Recarregar dados"):
    admin.reload_opening_hours()
    admin.reload_reference_data()
    admin.reload_bookings()

if admin.last_error:
    st.warning(f"Exibindo os últimos dados carregados: {admin.last_error}")

tab_agenda, tab_new, tab_hours, tab_dashboard = st.tabs(["Agenda", "Agendar", "Horários", "Dashboard"])

# --- Agenda ---
with tab_agenda:
    col1, col2, col3, col4 = st.columns(4)
    date_from = col1.date_input("De", value=None)
    date_to = col2.date_input("Até", value=None)
    status_filter = col3.selectbox("Status", [None] + list(BookingStatus), format_func=lambda s: s.value if s else "Todos")
    query = col4.text_input("Buscar")
    if st.button("Filtrar"):
        admin.reload_bookings(date_from, date_to, status_filter, query)

    if admin.bookings:
        df = pd.DataFrame(admin.bookings)
        df["date"] = df["date"].map(format_date_br)
        columns = [c for c in ["id", "date", "time", "customer_name", "pet_name", "service_title", "prize", "status"] if c in df.columns]
        st.dataframe(
            df[columns],
            use_container_width=True,
            column_config={
                "id": "ID",
                "date": "Data",
                "time": "Hora",
                "customer_name": "Cliente",
                "pet_name": "Pet",
                "service_title": "Serviço",
                "prize": "Mimo",
                "status": "Status",
            }
        )

        st.subheader("Atualizar status")
        booking_ids = [b["id"] for b in admin.bookings]
        selected_id = st.selectbox("Agendamento", booking_ids)
        selected = next(b for b in admin.bookings if b["id"] == selected_id)
        loaded_status = BookingStatus.parse(selected.get("status")) or BookingStatus.AGENDADO
        new_status = st.selectbox("Novo status", list(BookingStatus), index=list(BookingStatus).index(loaded_status), format_func=lambda s: s.value)

        if st.button("Salvar status"):
            try:
                result = admin.save_booking({"status": new_status.value}, booking_id=selected_id, loaded_status=loaded_status)
                admin.reload_bookings(date_from, date_to, status_filter, query)
                if result.notification_message:
                    st.session_state["last_message"] = (selected_id, result.notification_message, result.whatsapp_link)
                st.success("Agendamento atualizado.")
            except ApiError as e:
                st.error(e.message)

        if st.button("Mostrar mensagem do status atual"):
            try:
                preview = admin.notification_for(selected_id)
                st.session_state["last_message"] = (selected_id, preview.message, preview.whatsapp_link)
            except ApiError as e:
                st.error(e.message)

        last = st.session_state.get("last_message")
        if last and last[0] == selected_id:
            _, message, whatsapp_link = last
            st.text_area("Mensagem para o cliente", message, height=160)
            if whatsapp_link:
                st.link_button("Enviar pelo WhatsApp", whatsapp_link)
            else:
                st.caption("Cliente sem telefone cadastrado.")
    else:
        st.info("Nenhum agendamento.")

# --- Agendar ---
with tab_new:
    customers = {c["id"]: c["name"] for c in admin.customers}
    if not customers:
        st.info("Cadastre um cliente antes de agendar.")
    else:
        customer_id = st.selectbox("Cliente", list(customers), format_func=customers.get)
        pets = {p["id"]: p["name"] for p in admin.pets_of(customer_id)}
        pet_id = st.selectbox("Pet", [None] + list(pets), format_func=lambda p: pets.get(p, "-"))
        services = {s["id"]: s["title"] for s in admin.services}
        service_id = st.selectbox("Serviço", [None] + list(services), format_func=lambda s: services.get(s, "-"))
        mimos = {str(m["id"]): m["title"] for m in admin.mimos}
        prize = st.selectbox("Mimo", [""] + list(mimos), format_func=lambda m: mimos.get(m, "-"))
        day = st.date_input("Data", value=date.today())

        if not admin.reload_occupancy(day):
            st.warning(admin.last_error)
        window = admin.window_for(day)
        if window.closed:
            st.warning("Fechado neste dia.")
        raw_time = st.text_input("Hora (HH:MM)", value="")
        time = admin.clamp_time(day, raw_time) if raw_time else None
        if raw_time and time and time != raw_time:
            st.caption(f"Horário ajustado para {time}")
        st.caption("Livres: " + (", ".join(admin.free_slots(day)) or "-"))
        notes = st.text_area("Observações")

        st.button("Agendar", disabled=admin.submitting, on_click=admin.request_submit)
        if admin.submitting:
            try:
                fields = {
                    "customer_id": customer_id,
                    "pet_id": pet_id,
                    "service_id": service_id,
                    "service": services.get(service_id, ""),
                    "date": day.isoformat(),
                    "time": time or raw_time,
                    "prize": prize,
                    "notes": notes,
                }
                result = admin.submit_booking(fields)
                st.success(f"Agendado para {format_date_br(result.booking.date)} às {result.booking.time}.")
                admin.reload_occupancy(day)
                admin.reload_bookings()
            except ApiError as e:
                st.error(e.message)

# --- Horários ---
with tab_hours:
    rules = {r.dow: r for r in admin.opening_hours}
    edited = []
    for dow in range(7):
        rule = rules.get(dow) or OpeningHoursRule(dow=dow, is_closed=True)
        c1, c2, c3, c4 = st.columns(4)
        closed = c1.checkbox(f"{WEEKDAY_NAMES[dow]} fechado", value=rule.is_closed, key=f"closed_{dow}")
        open_time = c2.text_input("Abre", value=rule.open_time or "", key=f"open_{dow}", disabled=closed)
        close_time = c3.text_input("Fecha", value=rule.close_time or "", key=f"close_{dow}", disabled=closed)
        capacity = c4.number_input("Por meia hora", min_value=0, value=rule.max_per_half_hour or 0, key=f"cap_{dow}", disabled=closed)
        edited.append({"dow": dow, "is_closed": closed, "open_time": open_time, "close_time": close_time, "max_per_half_hour": capacity})

    if st.button("Salvar horários"):
        try:
            admin.save_opening_hours([OpeningHoursRule.model_validate(row) for row in edited])
            st.success("Horários salvos.")
        except ValueError as e:
            st.error(f"Horário inválido: {e}")
        except ApiError as e:
            st.error(e.message)

# --- Dashboard ---
with tab_dashboard:
    try:
        summary = admin.client.get("/api/dashboard")
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Agendamentos", summary["bookings"])
        col2.metric("Clientes", summary["customers"])
        col3.metric("Pets", summary["pets"])
        col4.metric("Faturamento", f"R$ {summary['revenue_cents'] / 100:,.2f}")
        if summary["mimos"]:
            st.write(" • ".join(f"{title}: {count}" for title, count in summary["mimos"].items()))
    except ApiError as e:
        st.error(e.message)

# Footer
st.markdown("---")
st.caption("PetFunny • Banho & Tosa")
