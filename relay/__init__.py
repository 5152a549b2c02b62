"""Pacote do relay GitLab -> Discord.

Este pacote contém:
- constants: variáveis de ambiente e constantes de formatação
- errors: exceções de configuração e de payload
- utils: truncamento, timestamps e helpers
- routing: carga das rotas namespace -> webhook e lookup
- validation: checagem do formato dos payloads do GitLab
- formatters: conversão de eventos push / merge_request em mensagens do Discord
- services: envio para o Discord (retry opcional)
- metrics: contadores Prometheus por app (prometheus_client)
- controller: criação do Flask app e endpoints
"""
