import smtplib
import os
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def send_verification_email(email, username, code):
    """
    Envía el correo con el código de verificación de la cuenta.

    El envío es de mejor esfuerzo: si faltan las credenciales SMTP o el
    servidor falla, se registra el error y el registro continúa.

    :param email: Dirección de correo electrónico del destinatario.
    :param username: Nombre de usuario que se está verificando.
    :param code: Código numérico a incluir en el cuerpo del correo.
    :return: True si el correo fue entregado al servidor SMTP.
    """
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")

    if not smtp_user or not smtp_pass:
        logger.warning("Las credenciales SMTP no están configuradas; no se envía el código de verificación")
        return False

    smtp_host = os.getenv("SMTP_HOST", "smtp.zoho.com")
    smtp_port = int(os.getenv("SMTP_PORT", "465"))  # SSL

    subject = "Mystery Threads | Código de verificación"
    body_html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{
                font-family: Arial, sans-serif;
                line-height: 1.6;
                color: #333;
                background-color: #f7f7f7;
                margin: 0;
                padding: 0;
            }}
            .container {{
                width: 100%;
                max-width: 600px;
                margin: 0 auto;
                background-color: #ffffff;
                padding: 20px;
                border-radius: 8px;
            }}
            .code-box {{
                background-color: #f2f2f2;
                padding: 10px;
                border-radius: 5px;
                display: inline-block;
                margin: 20px 0;
                font-size: 18px;
                font-weight: bold;
                letter-spacing: 4px;
            }}
            .footer {{
                margin-top: 30px;
                text-align: center;
                font-size: 12px;
                color: #777;
            }}
        </style>
    </head>
    <body>
        <div class="container">
            <h2>Hola, {username}</h2>
            <p>Gracias por registrarte en Mystery Threads. Usa el siguiente código para verificar tu cuenta:</p>
            <div class="code-box" id="code">{code}</div>
            <p>Si no creaste esta cuenta, ignora este correo.</p>
            <div class="footer">
                <p>El equipo de Mystery Threads</p>
            </div>
        </div>
    </body>
    </html>
    """

    # Crear el mensaje de correo electrónico
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = smtp_user
    msg["To"] = email
    msg.attach(MIMEText(body_html, "html"))

    try:
        with smtplib.SMTP_SSL(smtp_host, smtp_port) as server:
            server.login(smtp_user, smtp_pass)
            server.sendmail(smtp_user, email, msg.as_string())
        logger.info(f"Correo de verificación enviado a {email}")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error al enviar correo de verificación a {email}: {e}")
        return False
