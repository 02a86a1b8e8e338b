"""hookbridge: republish GitHub webhooks onto a RabbitMQ exchange."""
