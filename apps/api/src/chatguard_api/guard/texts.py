from __future__ import annotations

# Shown persistently above the chat compose box.
CHAT_DISCLAIMER = (
    "Discuta o caso por idade/sexo/sintomas/exames. "
    "Não use nome, CPF/CNS, telefone, endereço, e-mail, prontuário."
)

# One-time consent shown before first use of the chat.
TERMS_TEXT = """TERMO DE COMPROMISSO DE SIGILO MÉDICO

Ao utilizar o chat interno do Salva Plantão, eu me comprometo a:

1. Manter o sigilo médico conforme o Código de Ética Médica
2. Não compartilhar dados que identifiquem pacientes (nome, CPF, CNS, telefone, endereço, e-mail, prontuário)
3. Descrever casos clínicos de forma anonimizada (idade, sexo, sintomas, exames)
4. Entender que as mensagens são criptografadas e expiram em 24 horas
5. Usar este canal apenas para discussões clínicas e profissionais

Declaro estar ciente de que o descumprimento deste termo pode resultar em bloqueio do acesso ao chat e responsabilização nos termos da lei."""  # noqa: E501
