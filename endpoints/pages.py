from fastapi import APIRouter
from fastapi.responses import HTMLResponse
from html import escape
import json

router = APIRouter()


def render_page(title: str, body: str) -> HTMLResponse:
    """
    Envuelve el contenido de una página en el documento HTML común.
    """
    return HTMLResponse(f"""<!DOCTYPE html>
<html lang="es">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{escape(title)} | Mystery Threads</title>
</head>
<body>
    <nav><a href="/">Mystery Threads</a></nav>
    <main>
{body}
    </main>
    <p id="feedback" role="status"></p>
    <script>
        async function callApi(method, url, body) {{
            const options = {{ method: method, headers: {{ "Content-Type": "application/json" }}, credentials: "same-origin" }};
            if (body !== undefined) options.body = JSON.stringify(body);
            const response = await fetch(url, options);
            const data = await response.json();
            document.getElementById("feedback").textContent = data.message || "";
            return {{ ok: response.ok, data: data }};
        }}
        function formData(form) {{
            return Object.fromEntries(new FormData(form).entries());
        }}
    </script>
</body>
</html>""")


@router.get("/", response_class=HTMLResponse)
def landing_page():
    return render_page("Inicio", """
        <h1>Mensajes anónimos</h1>
        <p>Crea tu cuenta, comparte tu enlace y recibe mensajes sin saber quién los envía.</p>
        <p><a href="/sign-up">Crear cuenta</a> · <a href="/sign-in">Iniciar sesión</a></p>
    """)


@router.get("/sign-up", response_class=HTMLResponse)
def sign_up_page():
    return render_page("Registro", """
        <h1>Crear cuenta</h1>
        <form id="sign-up-form">
            <input name="username" placeholder="Nombre de usuario" required>
            <small id="username-status"></small>
            <input name="email" type="email" placeholder="Correo electrónico" required>
            <input name="password" type="password" placeholder="Contraseña" required>
            <button type="submit">Registrarse</button>
        </form>
        <script>
            const form = document.getElementById("sign-up-form");
            form.username.addEventListener("change", async () => {
                const response = await fetch("/check-username-unique?username=" + encodeURIComponent(form.username.value));
                const data = await response.json();
                document.getElementById("username-status").textContent = data.message;
            });
            form.addEventListener("submit", async (event) => {
                event.preventDefault();
                const values = formData(form);
                const result = await callApi("POST", "/sign-up", values);
                if (result.ok) window.location.href = "/verify/" + encodeURIComponent(values.username);
            });
        </script>
    """)


@router.get("/sign-in", response_class=HTMLResponse)
def sign_in_page():
    return render_page("Iniciar sesión", """
        <h1>Iniciar sesión</h1>
        <form id="sign-in-form">
            <input name="identifier" placeholder="Correo o nombre de usuario" required>
            <input name="password" type="password" placeholder="Contraseña" required>
            <button type="submit">Entrar</button>
        </form>
        <script>
            const form = document.getElementById("sign-in-form");
            form.addEventListener("submit", async (event) => {
                event.preventDefault();
                const result = await callApi("POST", "/sign-in", formData(form));
                if (result.ok) window.location.href = "/dashboard";
            });
        </script>
    """)


@router.get("/verify/{username}", response_class=HTMLResponse)
def verify_page(username: str):
    return render_page("Verificar cuenta", """
        <h1>Verifica tu cuenta</h1>
        <p>Ingresa el código que enviamos a tu correo.</p>
        <form id="verify-form">
            <input name="code" inputmode="numeric" maxlength="6" placeholder="Código" required>
            <button type="submit">Verificar</button>
        </form>
        <script>
            const username = __USERNAME__;
            const form = document.getElementById("verify-form");
            form.addEventListener("submit", async (event) => {
                event.preventDefault();
                const result = await callApi("POST", "/verify-code", { username: username, code: form.code.value });
                if (result.ok) window.location.href = "/sign-in";
            });
        </script>
    """.replace("__USERNAME__", escape(json.dumps(username), quote=False)))


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page():
    return render_page("Panel", """
        <h1>Tus mensajes</h1>
        <p>Tu enlace: <code id="profile-link"></code></p>
        <label><input type="checkbox" id="accept-toggle"> Aceptar mensajes</label>
        <button id="refresh">Actualizar</button>
        <button id="sign-out">Cerrar sesión</button>
        <ul id="messages"></ul>
        <script>
            const list = document.getElementById("messages");
            const toggle = document.getElementById("accept-toggle");

            async function loadMessages() {
                const result = await callApi("GET", "/get-messages");
                list.innerHTML = "";
                if (!result.ok) return;
                for (const message of result.data.messages) {
                    const item = document.createElement("li");
                    const text = document.createElement("span");
                    text.textContent = message.content + " (" + new Date(message.createdAt).toLocaleString() + ")";
                    const remove = document.createElement("button");
                    remove.textContent = "Eliminar";
                    remove.addEventListener("click", async () => {
                        if (!confirm("¿Eliminar este mensaje?")) return;
                        const deleted = await callApi("DELETE", "/delete-message/" + message._id);
                        if (deleted.ok) item.remove();
                    });
                    item.append(text, remove);
                    list.append(item);
                }
            }

            async function loadSession() {
                const result = await callApi("GET", "/session");
                if (!result.ok) return;
                const link = window.location.origin + "/u/" + encodeURIComponent(result.data.user.username);
                document.getElementById("profile-link").textContent = link;
                const accepting = await callApi("GET", "/accept-messages");
                if (accepting.ok) toggle.checked = accepting.data.isAcceptingMessages;
            }

            toggle.addEventListener("change", () => callApi("POST", "/accept-messages", { acceptMessages: toggle.checked }));
            document.getElementById("refresh").addEventListener("click", loadMessages);
            document.getElementById("sign-out").addEventListener("click", async () => {
                await callApi("POST", "/sign-out");
                window.location.href = "/sign-in";
            });

            loadSession().then(loadMessages);
        </script>
    """)


@router.get("/u/{username}", response_class=HTMLResponse)
def public_profile_page(username: str):
    return render_page(f"Enviar mensaje a {username}", """
        <h1>Envía un mensaje anónimo a @__USERNAME_TEXT__</h1>
        <form id="send-form">
            <textarea name="content" maxlength="300" placeholder="Escribe tu mensaje" required></textarea>
            <button type="submit">Enviar</button>
        </form>
        <button id="suggest">Sugerir mensajes</button>
        <ul id="suggestions"></ul>
        <script>
            const username = __USERNAME__;
            const form = document.getElementById("send-form");
            form.addEventListener("submit", async (event) => {
                event.preventDefault();
                const result = await callApi("POST", "/send-message", { username: username, content: form.content.value });
                if (result.ok) form.reset();
            });
            document.getElementById("suggest").addEventListener("click", async () => {
                const result = await callApi("POST", "/suggest-messages");
                const list = document.getElementById("suggestions");
                list.innerHTML = "";
                if (!result.ok) return;
                for (const question of result.data.result) {
                    const item = document.createElement("li");
                    const pick = document.createElement("button");
                    pick.type = "button";
                    pick.textContent = question;
                    pick.addEventListener("click", () => { form.content.value = question; });
                    item.append(pick);
                    list.append(item);
                }
            });
        </script>
    """.replace("__USERNAME_TEXT__", escape(username)).replace("__USERNAME__", escape(json.dumps(username), quote=False)))
