import logging

from lostfound import create_app


app = create_app()

if __name__ == '__main__':
    logging.basicConfig(level=app.config['LOG_LEVEL'])
    app.logger.info("Starting Lost & Found API...")
    for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.endpoint == 'static':
            continue
        methods = ', '.join(sorted(rule.methods - {'HEAD', 'OPTIONS'}))
        app.logger.info("  %-8s %s", methods, rule.rule)

    app.run(debug=not app.config['IS_PRODUCTION'], host='0.0.0.0', port=app.config['PORT'])
